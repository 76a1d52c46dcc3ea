import io
import zipfile

import pytest

import run_kit
from logokit import tracer


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("AWS_REGION", "AWS_BUCKET_NAME", "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(run_kit, "load_dotenv", lambda: False)


def test_builds_kit_from_local_file(tmp_path, logo_png, monkeypatch, capsys):
    monkeypatch.setattr(tracer.vtracer, "convert_image_to_svg_py", _fail)
    image = tmp_path / "acme.png"
    image.write_bytes(logo_png)
    output = tmp_path / "out" / "kit.zip"

    code = run_kit.main(["--image", str(image), "--label", "Acme Corp", "--output", str(output)])

    assert code == 0
    with zipfile.ZipFile(io.BytesIO(output.read_bytes())) as zf:
        assert zf.namelist()[:2] == ["README.txt", "logo.png"]
    assert "logo-kit.zip" in capsys.readouterr().out


def test_builds_kit_from_local_upload_path(local_root, tmp_path, monkeypatch):
    monkeypatch.setattr(tracer.vtracer, "convert_image_to_svg_py", _fail)
    monkeypatch.setenv("LOGOKIT_LOCAL_ROOT", str(local_root))
    output = tmp_path / "kit.zip"

    assert run_kit.main(["--image", "/uploads/logos/acme.png", "--output", str(output)]) == 0
    assert output.exists()


def test_reports_failures(tmp_path, capsys):
    output = tmp_path / "kit.zip"
    code = run_kit.main(["--image", "data:image/png;base64,@@@", "--output", str(output)])

    assert code == 1
    assert not output.exists()
    assert "Failed to generate logo kit" in capsys.readouterr().err


def test_malformed_settings_exit_cleanly(tmp_path, logo_png, monkeypatch, capsys):
    monkeypatch.setenv("LOGOKIT_MAX_WORKERS", "many")
    image = tmp_path / "acme.png"
    image.write_bytes(logo_png)

    code = run_kit.main(["--image", str(image), "--output", str(tmp_path / "kit.zip")])

    assert code == 1
    assert "LOGOKIT_MAX_WORKERS" in capsys.readouterr().err
    assert not (tmp_path / "kit.zip").exists()


def _fail(*args, **kwargs):
    raise RuntimeError("tracing disabled in tests")
