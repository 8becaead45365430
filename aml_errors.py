#!/usr/bin/env python3
"""Errors raised while decoding AML messages.

Only two conditions abort a decode: an SMS whose version header is missing or
unknown, and a base64 SMS payload that cannot be decoded. Every other malformed
value is dropped field by field.
"""

from __future__ import annotations

__all__ = [
    "AmlError",
    "UnimplementedVersion",
    "InvalidEncoding",
]


class AmlError(ValueError):
    """Base class for hard AML decode failures"""


class UnimplementedVersion(AmlError):
    """SMS `A"ML` header missing or not a supported version (1 or 2)."""

    def __init__(self, version: str | None = None):
        self.version = version
        if version is None:
            super().__init__("AML header missing")
        else:
            super().__init__(f"Unimplemented AML version: {version!r}")


class InvalidEncoding(AmlError):
    """Binary SMS payload is not valid base64."""
