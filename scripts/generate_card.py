#!/usr/bin/env python
"""Script to turn a photo on disk into a saved pixel card."""
from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from pixelcard.config import get_settings
from pixelcard.errors import PixelCardError
from pixelcard.main import build_services
from pixelcard.models import CreatePixelCardRequest
from pixelcard.utils.transform import encode_data_uri


async def _run(args: argparse.Namespace) -> int:
    photo = Path(args.photo)
    mime_type = mimetypes.guess_type(photo.name)[0] or "image/png"
    image_data = encode_data_uri(photo.read_bytes(), mime_type)

    services = build_services(get_settings())
    try:
        if not args.skip_ai:
            image_data = await services.image_provider.pixelate(image_data)
        response = services.pixel_card_service.save_pixel_card(
            CreatePixelCardRequest(user_name=args.name, image_data=image_data)
        )
    except PixelCardError as exc:
        print(f"{exc.code.value}: {exc.message}", file=sys.stderr)
        return 1
    finally:
        await services.close()

    print("Created pixel card:")
    print(response.model_dump_json(by_alias=True, indent=2))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate and save a pixel card")
    parser.add_argument("--name", required=True)
    parser.add_argument("--photo", required=True, help="PNG or JPEG photo of the person")
    parser.add_argument("--skip-ai", action="store_true", help="Save the photo without stylizing it")
    args = parser.parse_args()
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
