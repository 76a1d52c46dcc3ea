import io
import zipfile

import pytest

from logokit.archive import assemble_archive, build_manifest
from logokit.artifacts import Artifact, Failed
from logokit.errors import ArchiveEncodingError, MasterProductionError


def _artifact(name, payload=b"data"):
    return Artifact(filename=name, payload=payload, description=f"{name} description")


@pytest.fixture
def artifacts():
    return [
        _artifact("favicon.png"),
        _artifact("logo.svg", b"<svg/>"),
        _artifact("logo_small.png"),
        _artifact("logo.png", b"master"),
    ]


def test_manifest_first_and_catalog_order(artifacts, fixed_now):
    manifest = build_manifest("Acme Corp", artifacts, now=fixed_now)
    result = assemble_archive(manifest, artifacts)

    with zipfile.ZipFile(io.BytesIO(result.data)) as zf:
        names = zf.namelist()
        assert names == ["README.txt", "logo.png", "logo_small.png", "favicon.png", "logo.svg"]
        assert zf.read("logo.png") == b"master"
        assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in zf.infolist())
        assert zf.getinfo("logo.png").date_time == (2025, 5, 1, 12, 30, 0)
    assert result.entries == names


def test_manifest_text(artifacts, fixed_now):
    failed = [Failed(name="web", filename="logo.webp", reason="KeyError: 'WEBP'")]
    text = build_manifest("Acme Corp", artifacts, failed, now=fixed_now).render()

    assert text.startswith("Logo created with LogoGPT")
    assert "Generated on: 2025-05-01 12:30:00 UTC" in text
    assert "Prompt: Acme Corp" in text
    assert "- logo.png: logo.png description" in text
    assert "Could not be produced for this logo:" in text
    assert "- logo.webp" in text


def test_blank_label(artifacts, fixed_now):
    text = build_manifest("  ", artifacts, now=fixed_now).render()
    assert "Prompt: Not provided" in text
    assert "Could not be produced" not in text


def test_master_is_required(fixed_now):
    others = [_artifact("favicon.png")]
    with pytest.raises(MasterProductionError):
        assemble_archive(build_manifest("x", others, now=fixed_now), others)


def test_writer_failure_is_archive_error(artifacts, fixed_now, monkeypatch):
    def boom(self, *args, **kwargs):
        raise OSError("No space left on device")

    monkeypatch.setattr(zipfile.ZipFile, "writestr", boom)
    with pytest.raises(ArchiveEncodingError) as excinfo:
        assemble_archive(build_manifest("x", artifacts, now=fixed_now), artifacts)
    assert excinfo.value.stage == "archive"


def test_download_headers(artifacts, fixed_now):
    result = assemble_archive(build_manifest("x", artifacts, now=fixed_now), artifacts)
    assert result.filename == "logo-kit.zip"
    assert result.headers == {
        "Content-Type": "application/zip",
        "Content-Disposition": 'attachment; filename="logo-kit.zip"',
    }
