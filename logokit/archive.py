import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .artifacts import Artifact, Failed
from .errors import ArchiveEncodingError, MasterProductionError
from .render import MASTER_FILENAME, VARIANT_CATALOG
from .tracer import SVG_FILENAME


logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "README.txt"
ARCHIVE_FILENAME = "logo-kit.zip"
ARCHIVE_CONTENT_TYPE = "application/zip"
SUPPORT_CONTACT = "support@logogpt.com"

# Archive entry order; downstream scripts rely on these names.
ENTRY_ORDER: Tuple[str, ...] = (
    (MASTER_FILENAME,) + tuple(spec.filename for spec in VARIANT_CATALOG) + (SVG_FILENAME,)
)


@dataclass(frozen=True)
class KitManifest:
    label: str
    generated_at: datetime
    # (filename, description) in archive order
    entries: List[Tuple[str, str]] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    def render(self) -> str:
        lines = [
            "Logo created with LogoGPT",
            f"Generated on: {self.generated_at.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}",
            f"Prompt: {self.label.strip() or 'Not provided'}",
            "",
            "This kit contains the following files:",
            "",
        ]
        lines.extend(f"- {name}: {description}" for name, description in self.entries)
        if self.missing:
            lines.extend(["", "Could not be produced for this logo:", ""])
            lines.extend(f"- {name}" for name in self.missing)
        lines.extend(["", f"Need help? Contact {SUPPORT_CONTACT}", ""])
        return "\n".join(lines)


@dataclass(frozen=True)
class ArchiveResult:
    data: bytes
    entries: List[str]
    filename: str = ARCHIVE_FILENAME
    content_type: str = ARCHIVE_CONTENT_TYPE

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": self.content_type,
            "Content-Disposition": f'attachment; filename="{self.filename}"',
        }


def order_artifacts(artifacts: Iterable[Artifact]) -> List[Artifact]:
    rank = {name: i for i, name in enumerate(ENTRY_ORDER)}
    return sorted(artifacts, key=lambda a: (rank.get(a.filename, len(rank)), a.filename))


def build_manifest(
    label: Optional[str],
    artifacts: Sequence[Artifact],
    failed: Sequence[Failed] = (),
    now: Optional[datetime] = None,
) -> KitManifest:
    return KitManifest(
        label=label or "",
        generated_at=now or datetime.now(timezone.utc),
        entries=[(a.filename, a.description) for a in order_artifacts(artifacts)],
        missing=sorted({f.filename for f in failed}),
    )


def assemble_archive(manifest: KitManifest, artifacts: Sequence[Artifact]) -> ArchiveResult:
    """
    Write the manifest and every artifact into a DEFLATE zip held in memory.

    The manifest is always the first entry and the master must be present.
    """
    ordered = order_artifacts(artifacts)
    if not any(a.filename == MASTER_FILENAME for a in ordered):
        raise MasterProductionError("cannot assemble a kit without the master raster")

    date_time = manifest.generated_at.timetuple()[:6]
    buffer = io.BytesIO()
    names: List[str] = []
    try:
        with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
            _write_entry(zf, MANIFEST_FILENAME, manifest.render().encode("utf-8"), date_time)
            names.append(MANIFEST_FILENAME)
            for artifact in ordered:
                if artifact.filename in names:
                    raise ValueError(f"duplicate archive entry {artifact.filename!r}")
                _write_entry(zf, artifact.filename, artifact.payload, date_time)
                names.append(artifact.filename)
    except (OSError, MemoryError, ValueError, zipfile.LargeZipFile) as exc:
        raise ArchiveEncodingError("failed to write the kit archive", cause=exc) from exc

    data = buffer.getvalue()
    logger.info("Assembled %s with %d entries (%d bytes)", ARCHIVE_FILENAME, len(names), len(data))
    return ArchiveResult(data=data, entries=names)


def _write_entry(zf: zipfile.ZipFile, name: str, payload: bytes, date_time) -> None:
    info = zipfile.ZipInfo(name, date_time=date_time)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    zf.writestr(info, payload)
