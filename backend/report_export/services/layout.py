"""Scale-to-fit placement of a raster inside a target rectangle.

Units are whatever the caller works in (millimetres for PDF pages, pixels for
HTML canvases); only the ratios matter.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Placement:
    scale: float
    width: float
    height: float
    offset_x: float
    offset_y: float


def fit_to_box(
    raster_width: float,
    raster_height: float,
    box_width: float,
    box_height: float,
) -> Placement:
    """Uniformly scale the raster so it fits the box entirely, centred.

    The binding dimension fills the box exactly; the other is centred.
    """
    if raster_width <= 0 or raster_height <= 0:
        raise ValueError(
            f"Raster dimensions must be positive, got {raster_width}x{raster_height}"
        )
    if box_width < 0 or box_height < 0:
        raise ValueError(
            f"Target dimensions must not be negative, got {box_width}x{box_height}"
        )

    scale = min(box_width / raster_width, box_height / raster_height)
    width = raster_width * scale
    height = raster_height * scale
    return Placement(
        scale=scale,
        width=width,
        height=height,
        offset_x=max(0.0, (box_width - width) / 2),
        offset_y=max(0.0, (box_height - height) / 2),
    )
