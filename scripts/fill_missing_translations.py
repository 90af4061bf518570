#!/usr/bin/env python3
"""
Report or fill translations missing for the configured target languages.

Usage:
  python scripts/fill_missing_translations.py --languages en,de --prefix ui.
  python scripts/fill_missing_translations.py --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from lumen_i18n.config import settings
from lumen_i18n.services.i18n.bootstrap import create_localization
from lumen_i18n.services.i18n.errors import StoreError
from lumen_i18n.services.i18n.maintenance import fill_missing, find_missing


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fill translations missing for target languages.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--languages",
        default=",".join(settings.target_languages),
        help="Comma-separated target language codes.",
    )
    parser.add_argument(
        "--prefix",
        default="",
        help="Only consider keys starting with this prefix (e.g. 'ui.').",
    )
    parser.add_argument(
        "--context",
        default="ui",
        help="Context tag written on new rows.",
    )
    parser.add_argument(
        "--dry-run",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Only report missing keys.",
    )
    return parser.parse_args()


async def run(args: argparse.Namespace) -> dict:
    languages = [code.strip().lower() for code in args.languages.split(",") if code.strip()]
    localization = await create_localization(settings)
    try:
        if args.dry_run:
            missing = await find_missing(
                localization.resolver, languages, prefix=args.prefix
            )
            return {language: {"missing": keys} for language, keys in missing.items()}
        return await fill_missing(
            localization.resolver, languages, prefix=args.prefix, context=args.context
        )
    finally:
        await localization.aclose()


def main() -> int:
    logging.basicConfig(level=settings.log_level, format=settings.log_format)
    args = parse_args()
    try:
        result = asyncio.run(run(args))
    except StoreError as exc:
        print(f"Translation store error: {exc}", file=sys.stderr)
        return 1
    except RuntimeError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:  # pragma: no cover
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
