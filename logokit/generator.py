import logging
from typing import Any, Optional

from .errors import GenerationError
from .references import InlineDataRef


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-image-1"
PROMPT_TEMPLATE = (
    "Create a professional, minimalist logo for: {prompt}. "
    "The logo should be clean, modern, and suitable for business use."
)


class LogoGenerator:
    """
    Adapter for the text-to-image call that produces kit sources.

    The kit builder treats generation as a black box; this adapter exists so
    the CLI can go from a prompt to a kit in one step. Network retries are
    left to the OpenAI client.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        quality: str = "medium",
    ) -> None:
        self.client = client
        self.api_key = api_key
        self.model = model
        self.quality = quality

    def _get_client(self) -> Any:
        if self.client is None:
            if not self.api_key:
                raise GenerationError("OpenAI API key is missing")
            from openai import OpenAI

            self.client = OpenAI(api_key=self.api_key, timeout=60.0, max_retries=3)
        return self.client

    def generate(self, prompt: str) -> InlineDataRef:
        if not prompt or not prompt.strip():
            raise GenerationError("a prompt is required to generate a logo")

        client = self._get_client()
        logger.info("Generating logo with %s: %s", self.model, prompt[:100])
        try:
            response = client.images.generate(
                model=self.model,
                prompt=PROMPT_TEMPLATE.format(prompt=prompt.strip()),
                n=1,
                quality=self.quality,
            )
        except Exception as exc:
            raise GenerationError(_describe_api_error(exc), cause=exc) from exc

        data = getattr(response, "data", None) or []
        if not data:
            raise GenerationError("no image generated")
        b64 = getattr(data[0], "b64_json", None)
        if not b64:
            raise GenerationError("no base64 image data received from OpenAI")

        return InlineDataRef(payload=b64, media_type="image/png")


def _describe_api_error(exc: Exception) -> str:
    status = getattr(exc, "status_code", None)
    if status == 401:
        return "invalid API key or authentication error"
    if status == 429:
        return "rate limit exceeded or quota reached"
    return f"failed to generate logo: {exc}"
