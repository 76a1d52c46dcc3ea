import base64
import binascii
import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .errors import InvalidEncodingError, InvalidReferenceError, UnsupportedFormatError
from .references import ImageReference, InlineDataRef, ObjectStoreRef
from .storage import ObjectStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RasterBuffer:
    """
    Decoded pixel data shared read-only between pipeline stages.

    Stages must not mutate `image`; derive a new one via `copy_image()`.
    """

    image: Image.Image
    format: Optional[str] = None

    def __post_init__(self) -> None:
        width, height = self.image.size
        if width <= 0 or height <= 0:
            raise UnsupportedFormatError(f"image has invalid dimensions {width}x{height}")

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def mode(self) -> str:
        return self.image.mode

    @property
    def has_alpha(self) -> bool:
        return self.image.mode in ("RGBA", "LA", "PA") or "transparency" in self.image.info

    def copy_image(self) -> Image.Image:
        return self.image.copy()


@dataclass(frozen=True)
class AcquiredSource:
    raster: RasterBuffer
    # Kept verbatim for the highest-fidelity master.
    raw: bytes


class SourceAcquirer:
    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def acquire(self, reference: ImageReference) -> AcquiredSource:
        if isinstance(reference, ObjectStoreRef):
            raw = self.store.get_object(reference.bucket, reference.key)
        elif isinstance(reference, InlineDataRef):
            raw = decode_inline(reference)
        else:
            raise InvalidReferenceError(f"unsupported image reference type: {type(reference).__name__}")

        logger.info("Acquired %d source bytes from %s", len(raw), reference)
        return AcquiredSource(raster=decode_raster(raw), raw=raw)


def decode_inline(reference: InlineDataRef) -> bytes:
    payload = "".join(reference.payload.split())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidEncodingError("inline image payload is not valid base64", cause=exc) from exc


def decode_raster(raw: bytes) -> RasterBuffer:
    if not raw:
        raise UnsupportedFormatError("source image is empty")
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise UnsupportedFormatError("source bytes are not a decodable raster image", cause=exc) from exc
    return RasterBuffer(image=image, format=image.format)
