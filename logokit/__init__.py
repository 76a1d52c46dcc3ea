"""
Logo asset-kit builder.

Modules:
- core: pipeline orchestration
- source: source image acquisition & decoding
- storage: object-store clients (S3 and local fallback)
- render: master normalization and raster variants
- tracer: best-effort raster-to-SVG tracing
- archive: README manifest and zip assembly
- generator: text-to-image adapter used by the CLI
"""

from .archive import ArchiveResult
from .config import KitSettings
from .core import LogoKitPipeline
from .references import InlineDataRef, ObjectStoreRef, parse_image_reference

__all__ = [
    "ArchiveResult",
    "InlineDataRef",
    "KitSettings",
    "LogoKitPipeline",
    "ObjectStoreRef",
    "parse_image_reference",
]
