"""Audit appendix content shared by the PDF and slide exporters."""

from __future__ import annotations

from datetime import datetime

from report_export.models.schemas import AuditMetadata, ExportOptions
from report_export.services.i18n import Translator
from report_export.utils.export_utils import collapse_whitespace

# Hard cap on embedded SQL text, keeps appendix size bounded
SQL_PREVIEW_LIMIT = 1800


def truncate_sql(sql: str, limit: int = SQL_PREVIEW_LIMIT) -> str:
    return sql[:limit]


def resolve_data_as_of(options: ExportOptions, audit: AuditMetadata | None) -> str | None:
    """Audit metadata wins over the export options."""
    value = (audit.data_as_of if audit else None) or options.data_as_of
    if value and value.strip():
        return value.strip()
    return None


def build_audit_lines(
    package_name: str,
    page_count: int,
    options: ExportOptions,
    audit: AuditMetadata | None,
    t: Translator,
    now: datetime | None = None,
) -> list[str]:
    """Plain-text lines of the audit appendix, one SQL statement per line."""
    generated_at = (audit.generated_at if audit else None) or (now or datetime.now()).isoformat()
    lines = [
        f"{t('reports.pack_name', 'Package')}: {(audit.pack_name if audit else None) or package_name}",
        f"{t('reports.generated_on', 'Generated on')}: {generated_at}",
    ]
    data_as_of = resolve_data_as_of(options, audit)
    if data_as_of:
        lines.append(f"{t('reports.data_as_of', 'Data as of')}: {data_as_of}")
    lines.append(f"{t('reports.pages', 'Pages')}: {page_count}")
    lines.append("")
    lines.append(f"{t('reports.audit_sql_sources', 'SQL Sources')}:")

    sources = audit.sql_sources if audit else []
    if not sources:
        lines.append(f"- {t('common.no_data', 'No data')}")
    for entry in sources:
        lines.append(f"- {entry.source}")
        lines.append(f"  {truncate_sql(collapse_whitespace(entry.sql))}")
    return lines


def build_audit_blocks(audit: AuditMetadata | None) -> list[str]:
    """``source\\nsql`` blocks for preformatted rendering; SQL keeps its layout."""
    if not audit:
        return []
    return [f"{entry.source}\n{truncate_sql(entry.sql)}" for entry in audit.sql_sources]
