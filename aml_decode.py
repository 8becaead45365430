#!/usr/bin/env python3
"""Decode an AML message from the command line and print the result as JSON.

Exactly one input is required:

    python aml_decode.py --text 'A"ML=1;lt=48.82639;lg=-2.36619;...'
    python aml_decode.py --hex 415193D98BEDD8F4DEECE6A2...
    python aml_decode.py --base64 QVGT2Yvt2PTe7Oai...
    python aml_decode.py --https 'v=1&location_latitude=55.85732&...&hmac=...'

HTTPS payloads are HMAC-checked first when `hmac.secret` is set in the
config file. A failed check is reported but the payload is still decoded.
"""
from __future__ import annotations

import argparse
import json
import logging

from aml_codec import AmlData, from_base64_sms, from_data_sms, from_https, from_text_sms
from aml_config import DEFAULT_CONFIG_PATH, load_config
from aml_hmac import is_authenticated

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'
logger = logging.getLogger("aml_decode")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decode an AML emergency location SMS or HTTPS payload")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('-t', '--text', help='AML SMS text (A"ML=...;...)')
    source.add_argument('-x', '--hex', help='Hex string of a GSM 7-bit packed AML SMS body')
    source.add_argument('-b', '--base64', help='Base64 of a GSM 7-bit packed AML SMS body')
    source.add_argument('-u', '--https', help='URL-encoded AML HTTPS form body')

    parser.add_argument('-c', '--config', default=DEFAULT_CONFIG_PATH, help='YAML config file (default: config.yaml)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable DEBUG logging')
    return parser.parse_args(argv)


def _decode(args: argparse.Namespace, hmac_secret: str | None) -> AmlData:
    if args.text is not None:
        return from_text_sms(args.text)
    if args.hex is not None:
        return from_data_sms(bytes.fromhex(args.hex.replace(' ', '')))
    if args.base64 is not None:
        return from_base64_sms(args.base64)

    if hmac_secret is not None:
        authenticated = is_authenticated(args.https, hmac_secret)
        logger.info("HMAC authenticated: %s", authenticated)
        print(f"HMAC: {'valid' if authenticated else 'INVALID'}")
    return from_https(args.https)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_config(args.config)

    level = logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    try:
        aml = _decode(args, config.hmac_secret)
    except ValueError as e:  # AmlError or malformed hex
        logger.error("Failed to decode AML payload: %s", e)
        print(f"Error: {e}")
        return 1

    print(json.dumps(aml.to_dict(), indent=2))
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
