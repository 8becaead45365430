#!/usr/bin/env python3
"""GSM 7-bit default alphabet unpacking (ETSI TS 123 038, clause 6.1.2.1.1).

Binary AML SMS carry their `key=value` text as packed septets. Unpacking
only shifts bits back into octets; the septets of an AML payload are plain
ASCII so no alphabet table lookup is applied.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def unpack_7bit(packed_bytes: bytes) -> bytes:
    """Unpack GSM 7-bit packed octets into one octet per septet.

    Total over any input: each octet yields one septet, and every 7th octet
    flushes the carried bits as an extra septet. A trailing partial group is
    not padded.
    """
    out = bytearray()
    shift = 0
    carry = 0

    for byte in packed_bytes:
        out.append(((byte << shift) | carry) & 0x7F)
        carry = byte >> (7 - shift)
        shift += 1

        if shift == 7:
            out.append(carry)
            carry = 0
            shift = 0

    logger.debug("Unpacked %d octets into %d septets", len(packed_bytes), len(out))
    return bytes(out)
