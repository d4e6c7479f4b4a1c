from datetime import datetime

from fastapi import APIRouter

from report_export.services.playwright_manager import playwright_manager

router = APIRouter()


@router.get("/api/health")
async def health() -> dict:
    status: dict = {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "components": {},
    }

    if playwright_manager.is_initialized:
        status["components"]["playwright"] = "healthy"
        if playwright_manager.last_health_check:
            status["playwright_last_check"] = (
                playwright_manager.last_health_check.isoformat()
            )
    else:
        status["components"]["playwright"] = "not_initialized"
        status["status"] = "degraded"

    return status
