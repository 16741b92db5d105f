"""Seed the currency catalog.

Usage: python -m scripts.seed_currencies [CODE:NAME:SIGN ...] [--default CODE]
"""

import argparse
import logging

from app.core.config import get_settings
from app.core.errors import AlreadyExists
from app.core.logging import configure_logging
from app.dependencies import build_ledger


logger = logging.getLogger(__name__)


def _parse_currency(raw: str) -> tuple[str, str, str]:
    parts = raw.split(":")
    if len(parts) != 3 or not all(part.strip() for part in parts):
        raise argparse.ArgumentTypeError(f"Expected CODE:NAME:SIGN, got {raw!r}")
    code, name, sign = (part.strip() for part in parts)
    return code, name, sign


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("currencies", nargs="*", type=_parse_currency)
    parser.add_argument("--default", dest="default_code")
    args = parser.parse_args()

    configure_logging()
    settings = get_settings()
    ledger = build_ledger()
    ledger.ensure_default_currency(
        settings.default_currency_code,
        settings.default_currency_name,
        settings.default_currency_sign,
    )
    for code, name, sign in args.currencies:
        try:
            ledger.add_currency(code, name, sign)
        except AlreadyExists:
            logger.info("Currency %s already present, skipping", code.upper())
    if args.default_code:
        ledger.set_default_currency(args.default_code)

    for currency in ledger.list_currencies():
        marker = "*" if currency.is_default else " "
        print(f"{marker} {currency.code} {currency.sign} {currency.name}")


if __name__ == "__main__":
    main()
