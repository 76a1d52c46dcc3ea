import io
import logging
from concurrent.futures import Executor, Future, wait
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageOps

from .artifacts import Artifact, Failed, Outcome, Produced, VariantReport
from .errors import LogoKitError, MasterProductionError
from .source import AcquiredSource, RasterBuffer


logger = logging.getLogger(__name__)

Size = Tuple[int, int]

MASTER_FILENAME = "logo.png"
MASTER_DESCRIPTION = "High resolution PNG format with transparency"

# Sources smaller than this on either side are upscaled...
MASTER_MIN_SIDE = 800
# ...so that their longer side reaches this length.
MASTER_TARGET_SIDE = 1000

THRESHOLD = 128


@dataclass(frozen=True)
class VariantSpec:
    """
    One derived raster in the kit.

    fit: "none" keeps master dimensions, "inside" shrinks to fit `size`
    without upscaling, "contain" scales onto a transparent canvas of exactly
    `size`, "exact" resizes to `size` ignoring aspect ratio.
    color: "none", "grayscale" or "grayscale-invert".
    """

    name: str
    filename: str
    description: str
    size: Optional[Size] = None
    fit: str = "none"
    color: str = "none"
    codec: str = "PNG"
    save_params: Dict[str, Any] = field(default_factory=dict)
    media_type: str = "image/png"


VARIANT_CATALOG: Tuple[VariantSpec, ...] = (
    VariantSpec(
        name="compact",
        filename="logo_small.png",
        description="Small PNG format for web/mobile",
        size=(500, 500),
        fit="inside",
    ),
    VariantSpec(
        name="web",
        filename="logo.webp",
        description="Modern web format with small file size",
        codec="WEBP",
        save_params={"lossless": True, "quality": 90},
        media_type="image/webp",
    ),
    VariantSpec(
        name="light",
        filename="logo_white.png",
        description="White version for dark backgrounds",
        color="grayscale-invert",
    ),
    VariantSpec(
        name="dark",
        filename="logo_black.png",
        description="Black version for light backgrounds",
        color="grayscale",
    ),
    VariantSpec(
        name="wide",
        filename="logo_horizontal.png",
        description="Horizontal layout version (1200x800, transparent padding)",
        size=(1200, 800),
        fit="contain",
    ),
    VariantSpec(
        name="favicon",
        filename="favicon.png",
        description="Browser favicon (16x16)",
        size=(16, 16),
        fit="exact",
    ),
)


def produce_master(source: AcquiredSource) -> Tuple[Artifact, RasterBuffer]:
    """
    Normalize the source into the lossless master raster.

    Small sources are upscaled so the longer side reaches ~1000px. A still
    RGB/RGBA PNG that needs no resizing is kept byte-for-byte.
    """
    try:
        img = _normalize_mode(source.raster.copy_image())
        target = master_size(img.width, img.height)
        if target != img.size:
            logger.info("Upscaling master from %dx%d to %dx%d", img.width, img.height, *target)
            img = img.resize(target, Image.LANCZOS)
            payload = encode(img, "PNG")
        elif _is_plain_png(source.raster):
            payload = source.raw
        else:
            payload = encode(img, "PNG")
        master = RasterBuffer(image=img, format="PNG")
    except LogoKitError:
        raise
    except Exception as exc:
        raise MasterProductionError("could not produce the master raster", cause=exc) from exc

    artifact = Artifact(filename=MASTER_FILENAME, payload=payload, description=MASTER_DESCRIPTION)
    return artifact, master


def _is_plain_png(raster: RasterBuffer) -> bool:
    # Only a still 8-bit RGB/RGBA PNG matches the buffer the variants use.
    return (
        raster.format == "PNG"
        and raster.mode in ("RGB", "RGBA")
        and not getattr(raster.image, "is_animated", False)
    )


def master_size(width: int, height: int) -> Size:
    longest = max(width, height)
    if (width < MASTER_MIN_SIDE or height < MASTER_MIN_SIDE) and longest < MASTER_TARGET_SIDE:
        scale = MASTER_TARGET_SIDE / longest
        return max(1, round(width * scale)), max(1, round(height * scale))
    return width, height


def render_variant(master: RasterBuffer, spec: VariantSpec) -> Artifact:
    img = _apply_fit(master.copy_image(), spec)
    img = _apply_color(img, spec)
    payload = encode(img, spec.codec, **spec.save_params)
    return Artifact(
        filename=spec.filename,
        payload=payload,
        description=spec.description,
        media_type=spec.media_type,
    )


def render_outcome(master: RasterBuffer, spec: VariantSpec) -> Outcome:
    try:
        return Produced(render_variant(master, spec))
    except Exception as exc:
        logger.warning("Variant %r (%s) failed: %s: %s", spec.name, spec.filename, type(exc).__name__, exc)
        return Failed(name=spec.name, filename=spec.filename, reason=f"{type(exc).__name__}: {exc}")


def generate_variants(
    master: RasterBuffer,
    catalog: Optional[Sequence[VariantSpec]] = None,
    executor: Optional[Executor] = None,
) -> VariantReport:
    """
    Render every catalog entry; failures are recorded, never raised.

    With an executor the variants run concurrently and this call returns
    once all of them have settled. Outcomes keep catalog order either way.
    """
    specs = list(catalog or VARIANT_CATALOG)
    report = VariantReport()
    if executor is None:
        for spec in specs:
            report.add(render_outcome(master, spec))
        return report

    futures = [(spec, executor.submit(render_outcome, master, spec)) for spec in specs]
    wait([future for _, future in futures])
    for spec, future in futures:
        report.add(_settled(future, spec))
    return report


def _settled(future: Future, spec: VariantSpec) -> Outcome:
    try:
        return future.result()
    except Exception as exc:
        logger.warning("Variant %r crashed: %s", spec.name, exc)
        return Failed(name=spec.name, filename=spec.filename, reason=f"{type(exc).__name__}: {exc}")


def encode(img: Image.Image, codec: str, **params: Any) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format=codec, **params)
    return buffer.getvalue()


def _normalize_mode(img: Image.Image) -> Image.Image:
    has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
    if has_alpha:
        return img if img.mode == "RGBA" else img.convert("RGBA")
    return img if img.mode == "RGB" else img.convert("RGB")


def _apply_fit(img: Image.Image, spec: VariantSpec) -> Image.Image:
    if spec.fit == "none":
        return img
    if spec.size is None:
        raise ValueError(f"fit {spec.fit!r} requires a target size")

    if spec.fit == "inside":
        img.thumbnail(spec.size, Image.LANCZOS)
        return img
    if spec.fit == "exact":
        return img.resize(spec.size, Image.LANCZOS)
    if spec.fit == "contain":
        return _letterbox(img, spec.size)
    raise ValueError(f"unknown fit policy {spec.fit!r}")


def _letterbox(img: Image.Image, size: Size) -> Image.Image:
    """
    Scale to fit inside `size` and center on a transparent canvas of exactly
    that size.
    """
    width, height = size
    fitted = ImageOps.contain(img.convert("RGBA"), size, Image.LANCZOS)
    canvas = Image.new("RGBA", (width, height), color=(0, 0, 0, 0))
    x = (width - fitted.width) // 2
    y = (height - fitted.height) // 2
    canvas.paste(fitted, (x, y), fitted)
    return canvas


def _apply_color(img: Image.Image, spec: VariantSpec) -> Image.Image:
    if spec.color == "none":
        return img
    if spec.color not in ("grayscale", "grayscale-invert"):
        raise ValueError(f"unknown color transform {spec.color!r}")

    invert = spec.color == "grayscale-invert"
    try:
        return _grayscale(img, invert)
    except Exception as exc:
        logger.warning(
            "Grayscale conversion failed for %r, falling back to threshold %d: %s",
            spec.name,
            THRESHOLD,
            exc,
        )
        return _threshold(img, invert)


def _grayscale(img: Image.Image, invert: bool) -> Image.Image:
    alpha = img.getchannel("A") if img.mode in ("RGBA", "LA") else None
    gray = img.convert("L")
    if invert:
        gray = ImageOps.invert(gray)
    if alpha is not None:
        gray.putalpha(alpha)
    return gray


def _threshold(img: Image.Image, invert: bool) -> Image.Image:
    # Works on the raw pixel array so it does not depend on Pillow's
    # colour-space conversion.
    arr = np.asarray(img)
    alpha = None
    if arr.ndim == 2:
        luma = arr.astype(np.float32)
    else:
        if arr.shape[2] in (2, 4):
            alpha = arr[..., -1]
        color = arr[..., :3] if arr.shape[2] >= 3 else arr[..., :1]
        luma = color.astype(np.float32).mean(axis=2)

    binary = np.where(luma >= THRESHOLD, 255, 0).astype(np.uint8)
    if invert:
        binary = 255 - binary

    out = Image.fromarray(binary)
    if alpha is not None:
        out.putalpha(Image.fromarray(np.ascontiguousarray(alpha)))
    return out
