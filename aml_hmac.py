#!/usr/bin/env python3
"""HMAC check for AML HTTPS payloads.

The handset appends `&hmac=<hex>` as the last form field; the digest is an
HMAC-SHA1 over everything before it. The check works on the raw body, before
any form decoding, and only accepts the digest in that final position.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Union

logger = logging.getLogger(__name__)

HMAC_SEPARATOR = "&hmac="


def compute_hmac(message: str, secret: Union[str, bytes]) -> str:
    """Return the lowercase hex HMAC-SHA1 of `message` under `secret`."""
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    return hmac.new(secret, message.encode("utf-8"), hashlib.sha1).hexdigest()


def is_authenticated(payload: str, secret: Union[str, bytes]) -> bool:
    """Verify the trailing `&hmac=` digest of an AML HTTPS payload.

    Returns False unless the separator occurs exactly once and the hex
    digest after it matches (case-sensitive) the HMAC of the text before it.
    """
    parts = payload.split(HMAC_SEPARATOR)
    if len(parts) != 2:
        logger.warning("HMAC check failed: expected one %r separator, found %d",
                       HMAC_SEPARATOR, len(parts) - 1)
        return False

    message, digest = parts
    expected = compute_hmac(message, secret)
    if hmac.compare_digest(expected.encode("ascii"), digest.encode("utf-8")):
        return True

    logger.warning("HMAC check failed: digest mismatch")
    return False
