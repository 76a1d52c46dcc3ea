import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import vtracer
from PIL import Image, ImageOps

from .artifacts import Artifact, Failed, Outcome, Produced
from .source import RasterBuffer


logger = logging.getLogger(__name__)

SVG_FILENAME = "logo.svg"
SVG_DESCRIPTION = "Scalable vector format for print"


@dataclass(frozen=True)
class TraceSettings:
    """
    Bitmap tracing parameters.

    `filter_speckle` is the minimum feature size in pixels; spline mode
    enables curve fitting. The remaining values keep paths smooth and compact.
    """

    threshold: int = 128
    filter_speckle: int = 2
    mode: str = "spline"
    corner_threshold: int = 60
    length_threshold: float = 4.0
    max_iterations: int = 10
    splice_threshold: int = 45
    path_precision: int = 2


def binarize(master: RasterBuffer, threshold: int = 128) -> Image.Image:
    """grayscale -> normalize contrast -> hard threshold, transparent areas as background."""
    img = master.copy_image().convert("RGBA")
    background = Image.new("RGBA", img.size, (255, 255, 255, 255))
    gray = Image.alpha_composite(background, img).convert("L")
    gray = ImageOps.autocontrast(gray)
    return gray.point(lambda p: 255 if p >= threshold else 0)


def trace_master(
    master: RasterBuffer,
    scratch_dir: Path,
    settings: Optional[TraceSettings] = None,
) -> Outcome:
    """
    Trace dark regions of the master into an SVG document.

    Best-effort: every failure is logged and returned as `Failed`.
    """
    settings = settings or TraceSettings()
    bw_path = Path(scratch_dir) / "logo_bw.png"
    svg_path = Path(scratch_dir) / SVG_FILENAME

    try:
        binarize(master, settings.threshold).convert("RGB").save(bw_path, format="PNG")
        vtracer.convert_image_to_svg_py(
            str(bw_path),
            str(svg_path),
            colormode="binary",
            mode=settings.mode,
            filter_speckle=settings.filter_speckle,
            corner_threshold=settings.corner_threshold,
            length_threshold=settings.length_threshold,
            max_iterations=settings.max_iterations,
            splice_threshold=settings.splice_threshold,
            path_precision=settings.path_precision,
        )
        svg = svg_path.read_bytes()
        if b"<svg" not in svg:
            raise ValueError("tracer produced no SVG document")
    except Exception as exc:
        logger.warning("Vector trace failed: %s: %s", type(exc).__name__, exc)
        return Failed(name="vector", filename=SVG_FILENAME, reason=f"{type(exc).__name__}: {exc}")

    logger.debug("Traced %d bytes of SVG", len(svg))
    return Produced(
        Artifact(
            filename=SVG_FILENAME,
            payload=svg,
            description=SVG_DESCRIPTION,
            media_type="image/svg+xml",
        )
    )
