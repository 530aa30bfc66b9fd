"""
Utility script to check the Replicate integration with a single test render.

Uses the connectivity-check preset (square image, lower guidance scale) and
prints the resulting image URL.

Usage:
    python scripts/check_replicate.py \
        --prompt "Test image of MINGK the dog playing in a park"

Environment variables:
    REPLICATE_API_TOKEN  - required unless you pass --api-token
    REPLICATE_MODEL      - optional model override
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mingming_story.ai_generation import (
    CHECK_IMAGE_SETTINGS,
    ImageGenerationError,
    ReplicateImageGenerator,
)

DEFAULT_PROMPT = "Test image of MINGK the dog playing in a park"


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render one test image with the Mingming Replicate model."
    )
    parser.add_argument(
        "--prompt",
        default=DEFAULT_PROMPT,
        help=f"Prompt to render. Defaults to {DEFAULT_PROMPT!r}.",
    )
    parser.add_argument(
        "--api-token",
        default=None,
        help="Optional Replicate API token override (otherwise uses environment variable).",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Optional Replicate model identifier override (owner/model:version).",
    )
    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)

    generator = ReplicateImageGenerator(
        api_token=args.api_token,
        model_identifier=args.model,
    )

    print("Running generation with the following parameters:")
    print(f"  Prompt  : {args.prompt}")
    print(f"  Model   : {generator.model_identifier}")
    print(f"  Guidance: {CHECK_IMAGE_SETTINGS.guidance_scale}")
    print(f"  Aspect  : {CHECK_IMAGE_SETTINGS.aspect_ratio}")

    try:
        image_url = generator.generate_image_url(args.prompt, settings=CHECK_IMAGE_SETTINGS)
    except ImageGenerationError as exc:
        print(f"\nReplicate check failed: {exc}", file=sys.stderr)
        return 1

    print(f"\nReplicate output:\n  {image_url}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
