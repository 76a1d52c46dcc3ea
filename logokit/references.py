import re
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import unquote, urlparse

from .errors import InvalidEncodingError, InvalidReferenceError


@dataclass(frozen=True)
class ObjectStoreRef:
    bucket: str
    key: str

    def __post_init__(self) -> None:
        if not self.bucket or not self.key:
            raise InvalidReferenceError("object-store reference needs both a bucket and a key")

    def __str__(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


@dataclass(frozen=True)
class InlineDataRef:
    """Base64 image payload carried in the request itself."""

    payload: str
    media_type: Optional[str] = "image/png"

    def __post_init__(self) -> None:
        if not self.payload or not self.payload.strip():
            raise InvalidReferenceError("inline image payload is empty")
        if self.media_type is not None and not self.media_type.lower().startswith("image/"):
            raise InvalidEncodingError(f"declared media type {self.media_type!r} is not an image type")

    def __str__(self) -> str:
        return f"data:{self.media_type or 'application/octet-stream'};base64,<{len(self.payload)} chars>"


ImageReference = Union[ObjectStoreRef, InlineDataRef]

# https://<bucket>.s3.amazonaws.com/<key> or https://<bucket>.s3.<region>.amazonaws.com/<key>
_S3_HOST_RE = re.compile(r"^(?P<bucket>[^.]+(?:\.[^.]+)*?)\.s3(?:[.-][a-z0-9-]+)?\.amazonaws\.com$")
_DATA_URL_RE = re.compile(r"^data:(?P<media>[^;,]*)(?P<params>(?:;[^;,]*)*),(?P<payload>.*)$", re.DOTALL)


def parse_image_reference(text: Optional[str], local_bucket: str = "uploads") -> ImageReference:
    """
    Classify a raw image reference string once, at the boundary.

    Accepted forms:
    - s3://bucket/key
    - https://bucket.s3.<region>.amazonaws.com/key (the URLs stored for saved logos)
    - data:image/...;base64,... (freshly generated images)
    - /<local_bucket>/key (images saved by the local-filesystem fallback)
    """
    if text is None or not text.strip():
        raise InvalidReferenceError("image reference is required")
    text = text.strip()

    if text.startswith("data:"):
        return _parse_data_url(text)

    parsed = urlparse(text)
    if parsed.scheme == "s3":
        return ObjectStoreRef(bucket=parsed.netloc, key=unquote(parsed.path.lstrip("/")))

    if parsed.scheme in ("http", "https"):
        match = _S3_HOST_RE.match(parsed.hostname or "")
        if match:
            return ObjectStoreRef(bucket=match.group("bucket"), key=unquote(parsed.path.lstrip("/")))
        raise InvalidReferenceError(f"unsupported image URL host: {parsed.hostname!r}")

    local_prefix = f"/{local_bucket}/"
    if not parsed.scheme and text.startswith(local_prefix):
        return ObjectStoreRef(bucket=local_bucket, key=text[len(local_prefix):])

    raise InvalidReferenceError(f"unrecognised image reference: {text[:80]!r}")


def _parse_data_url(text: str) -> InlineDataRef:
    match = _DATA_URL_RE.match(text)
    if not match:
        raise InvalidEncodingError("malformed data URL")
    params = [p.strip().lower() for p in match.group("params").split(";") if p.strip()]
    if "base64" not in params:
        raise InvalidEncodingError("data URL is not base64-encoded")
    media_type = match.group("media").strip() or None
    return InlineDataRef(payload=match.group("payload"), media_type=media_type)
