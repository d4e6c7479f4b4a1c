"""Resolve image references (remote URL or data URI) into embeddable data URIs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlparse

import httpx
import structlog

from report_export.utils.export_utils import to_data_uri

logger = structlog.get_logger()

ImageFormat = Literal["PNG", "JPEG", "WEBP"]

_FORMAT_MIME: dict[str, str] = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}


@dataclass(frozen=True)
class EmbeddedImage:
    data_uri: str
    format: ImageFormat


class ImageFetchError(Exception):
    """The image could not be downloaded. ``status_code`` is None for transport errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def format_from_data_uri(uri: str) -> ImageFormat:
    header = uri.split(",", 1)[0].lower()
    if "image/jpeg" in header or "image/jpg" in header:
        return "JPEG"
    if "image/webp" in header:
        return "WEBP"
    return "PNG"


def detect_format(content_type: str, url: str) -> ImageFormat:
    """Content type first, then the URL's extension, PNG otherwise."""
    mime = content_type.lower()
    if "jpeg" in mime or "jpg" in mime:
        return "JPEG"
    if "webp" in mime:
        return "WEBP"
    if "png" in mime:
        return "PNG"

    path = urlparse(url).path.lower()
    if path.endswith((".jpg", ".jpeg")):
        return "JPEG"
    if path.endswith(".webp"):
        return "WEBP"
    return "PNG"


class ImageEmbedder:
    """Fetches decorative images for documents.

    Requests go out without a Referer header. A non-2xx answer or a transport
    failure raises ``ImageFetchError``; callers decide whether that is fatal.
    """

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if timeout is None:
            from report_export.config import settings

            timeout = settings.image_fetch_timeout_seconds
        self._timeout = timeout
        self._transport = transport

    async def resolve(self, ref: str) -> EmbeddedImage:
        ref = ref.strip()
        if ref.startswith("data:"):
            return EmbeddedImage(data_uri=ref, format=format_from_data_uri(ref))

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(ref)
        except httpx.HTTPError as e:
            raise ImageFetchError(f"Image request failed: {e}") from e

        if not response.is_success:
            raise ImageFetchError(
                f"Image request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        image_format = detect_format(response.headers.get("content-type", ""), ref)
        logger.debug(
            "Image fetched",
            url=ref[:120],
            format=image_format,
            size_bytes=len(response.content),
        )
        return EmbeddedImage(
            data_uri=to_data_uri(response.content, _FORMAT_MIME[image_format]),
            format=image_format,
        )
