import argparse
import base64
import logging
import mimetypes
import sys
from pathlib import Path

from dotenv import load_dotenv

from logokit.config import KitSettings
from logokit.core import LogoKitPipeline
from logokit.errors import LogoKitError
from logokit.generator import LogoGenerator
from logokit.references import InlineDataRef, parse_image_reference


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build a downloadable logo kit (PNG variants, SVG, README) from one logo image."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--image",
        help="Image reference: s3://bucket/key, an S3 object URL, a data: URL, "
        "a /uploads/... path, or a local image file.",
    )
    source.add_argument(
        "--generate",
        action="store_true",
        help="Generate the logo from --label with the OpenAI images API first.",
    )
    parser.add_argument(
        "--label",
        default="",
        help="Prompt/label recorded in the kit README.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("logo-kit.zip"),
        help="Where to write the kit archive.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall time budget in seconds; the SVG trace is skipped first.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def resolve_reference(image: str, settings: KitSettings):
    # Plain files on disk are passed inline so they need no object store.
    path = Path(image)
    if not image.startswith(("data:", "s3://", "http://", "https://")) and path.is_file():
        media_type = mimetypes.guess_type(path.name)[0] or "image/png"
        payload = base64.b64encode(path.read_bytes()).decode("ascii")
        return InlineDataRef(payload=payload, media_type=media_type)
    return parse_image_reference(image, local_bucket=settings.local_bucket)


def main(argv=None) -> int:
    # Load environment variables from a local .env file if present
    # (e.g. AWS_BUCKET_NAME=..., OPENAI_API_KEY=sk-...).
    load_dotenv()

    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = KitSettings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    try:
        if args.generate:
            generator = LogoGenerator(api_key=settings.openai_api_key, model=settings.image_model)
            reference = generator.generate(args.label)
        else:
            reference = resolve_reference(args.image, settings)

        pipeline = LogoKitPipeline(settings=settings)
        result = pipeline.build(reference, label=args.label, timeout=args.timeout)
    except LogoKitError as exc:
        print(f"Failed to generate logo kit: {exc}", file=sys.stderr)
        return 1

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(result.data)
    print(f"Saved {result.filename} as {args.output} ({len(result.data)} bytes)")
    for name in result.entries:
        print(f"  - {name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
