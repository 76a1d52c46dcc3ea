import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class KitSettings:
    """
    Runtime configuration for the kit builder and its collaborators.

    Values come from the process environment; the CLI loads a local `.env`
    file first (e.g. AWS_BUCKET_NAME=..., OPENAI_API_KEY=sk-...).
    """

    aws_region: Optional[str] = None
    aws_bucket_name: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    local_root: str = "public"
    local_bucket: str = "uploads"
    max_workers: int = 4
    trace_min_seconds: float = 2.0
    openai_api_key: Optional[str] = None
    image_model: str = "gpt-image-1"

    @property
    def s3_configured(self) -> bool:
        return all(
            (
                self.aws_region,
                self.aws_bucket_name,
                self.aws_access_key_id,
                self.aws_secret_access_key,
            )
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "KitSettings":
        env = os.environ if environ is None else environ

        max_workers = _parse_number(env, "LOGOKIT_MAX_WORKERS", int, cls.max_workers)
        if max_workers < 1:
            raise ValueError("LOGOKIT_MAX_WORKERS must be at least 1")

        return cls(
            aws_region=env.get("AWS_REGION") or None,
            aws_bucket_name=env.get("AWS_BUCKET_NAME") or None,
            aws_access_key_id=env.get("AWS_ACCESS_KEY_ID") or None,
            aws_secret_access_key=env.get("AWS_SECRET_ACCESS_KEY") or None,
            local_root=env.get("LOGOKIT_LOCAL_ROOT") or cls.local_root,
            local_bucket=env.get("LOGOKIT_LOCAL_BUCKET") or cls.local_bucket,
            max_workers=max_workers,
            trace_min_seconds=_parse_number(
                env, "LOGOKIT_TRACE_MIN_SECONDS", float, cls.trace_min_seconds
            ),
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            image_model=env.get("LOGOKIT_IMAGE_MODEL") or cls.image_model,
        )


def _parse_number(env: Mapping[str, str], name: str, kind, default):
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return kind(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a {kind.__name__}, got {raw!r}") from None
