#!/usr/bin/env python3
"""AML SMS parser (protocol versions 1 and 2).

An AML SMS body is a `;` separated list of `key=value` pairs opened by the
`A"ML=<version>` header, e.g.::

    A"ML=1;lt=48.82639;lg=-2.36619;rd=52;top=20191112112928;lc=68;pm=G;...
    A"ML=2;en=112;et=1593187189;lo=-37.42175,-122.08461,2000.1;ls=G;...

Binary SMS carry the same text GSM 7-bit packed. Each version has its own
field set, so the decoded result is one of two record types. A value that
does not convert simply leaves its field unset; only an unknown or missing
header aborts the decode.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Union

from aml_errors import UnimplementedVersion
from aml_fields import (
    parse_float,
    parse_float_list,
    parse_int,
    parse_naive_utc,
    parse_unsigned,
    seconds_to_utc,
    split_code,
    valid_choice,
)
from gsm_7bit import unpack_7bit

logger = logging.getLogger(__name__)

AML_HEADER = 'A"ML'

# `top` timestamp, UTC without offset
DATETIME_FORMAT = "%Y%m%d%H%M%S"

# Positioning method codes
POSITIONING_V1 = ("G", "W", "C", "U")
POSITIONING_V2 = ("G", "W", "C", "U", "F")


@dataclass(frozen=True)
class AmlSmsV1:
    """Decoded AML SMS, version 1"""
    header: Optional[str] = None
    latitude: Optional[float] = None              # WGS84
    longitude: Optional[float] = None             # WGS84
    radius: Optional[float] = None                # metres
    time_of_positioning: Optional[datetime] = None
    level_of_confidence: Optional[float] = None   # percent
    positioning_method: Optional[str] = None      # G / W / C / U
    imsi: Optional[str] = None
    imei: Optional[str] = None
    network_mcc: Optional[int] = None
    network_mnc: Optional[int] = None
    message_length: Optional[int] = None          # `ml`: whole SMS length
    is_validated: bool = False

    version = 1


@dataclass(frozen=True)
class AmlSmsV2:
    """Decoded AML SMS, version 2"""
    header: Optional[str] = None
    emergency_number: Optional[str] = None
    beginning_of_call: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None              # metres
    time_of_positioning: Optional[datetime] = None
    level_of_confidence: Optional[float] = None
    altitude: Optional[float] = None
    vertical_accuracy: Optional[float] = None
    positioning_method: Optional[str] = None      # G / W / C / U / F
    imei: Optional[str] = None
    network_mcc: Optional[str] = None
    network_mnc: Optional[str] = None
    home_mcc: Optional[str] = None
    home_mnc: Optional[str] = None
    language: Optional[str] = None                # IETF BCP 47
    is_validated: bool = True

    version = 2


AmlSms = Union[AmlSmsV1, AmlSmsV2]


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

def get_properties(text: str) -> Dict[str, str]:
    """Split SMS text into a key -> value map.

    Keys and values are trimmed; pairs missing either side are dropped.
    Only the first `=` separates key from value.
    """
    properties: Dict[str, str] = {}
    for field in text.split(";"):
        key, _, value = field.partition("=")
        key = key.strip()
        value = value.strip()
        if key and value:
            properties[key] = value
    return properties


# ---------------------------------------------------------------------------
# Version grammars
# ---------------------------------------------------------------------------

def _decode_v1(properties: Dict[str, str], text: str) -> AmlSmsV1:
    fields: Dict[str, Any] = {}

    for key, value in properties.items():
        if key == AML_HEADER:
            fields["header"] = value
        elif key == "lg":
            fields["longitude"] = parse_float(value)
        elif key == "lt":
            fields["latitude"] = parse_float(value)
        elif key == "rd":
            fields["radius"] = parse_float(value)
        elif key == "top":
            fields["time_of_positioning"] = parse_naive_utc(value, DATETIME_FORMAT)
        elif key == "lc":
            fields["level_of_confidence"] = parse_float(value)
        elif key == "pm":
            fields["positioning_method"] = valid_choice(value.upper(), POSITIONING_V1)
        elif key == "si":
            fields["imsi"] = value
        elif key == "ei":
            fields["imei"] = value
        elif key == "mcc":
            fields["network_mcc"] = parse_int(value)
        elif key == "mnc":
            fields["network_mnc"] = parse_int(value)
        elif key == "ml":
            fields["message_length"] = parse_unsigned(value)
        else:
            logger.debug("Ignoring unknown V1 key %r", key)

    message_length = fields.get("message_length")
    if message_length is not None:
        # TODO: confirm against non-ASCII V1 payloads whether `ml` counts bytes or characters
        actual_length = len(text.encode("utf-8"))
        fields["is_validated"] = message_length == actual_length
        if not fields["is_validated"]:
            logger.debug("V1 length mismatch: ml=%d, actual=%d", message_length, actual_length)

    return AmlSmsV1(**fields)


def _decode_v2(properties: Dict[str, str]) -> AmlSmsV2:
    fields: Dict[str, Any] = {}
    call_start: Optional[int] = None
    positioning_offset: Optional[int] = None

    for key, value in properties.items():
        if key == AML_HEADER:
            fields["header"] = value
        elif key == "en":
            fields["emergency_number"] = value
        elif key == "et":
            call_start = parse_int(value)
        elif key == "lo":
            fields["latitude"], fields["longitude"], fields["accuracy"] = parse_float_list(value, 3)
        elif key == "lt":
            positioning_offset = parse_int(value)
        elif key == "lc":
            fields["level_of_confidence"] = parse_float(value)
        elif key == "lz":
            fields["altitude"], fields["vertical_accuracy"] = parse_float_list(value, 2)
        elif key == "ls":
            fields["positioning_method"] = valid_choice(value.upper(), POSITIONING_V2)
        elif key == "ei":
            fields["imei"] = value
        elif key == "nc":
            fields["network_mcc"], fields["network_mnc"] = split_code(value)
        elif key == "hc":
            fields["home_mcc"], fields["home_mnc"] = split_code(value)
        elif key == "lg":
            fields["language"] = value
        else:
            logger.debug("Ignoring unknown V2 key %r", key)

    if call_start is not None:
        fields["beginning_of_call"] = seconds_to_utc(call_start)
        if positioning_offset is not None:
            fields["time_of_positioning"] = seconds_to_utc(call_start + positioning_offset)

    return AmlSmsV2(**fields)


# ---------------------------------------------------------------------------
# Core decode
# ---------------------------------------------------------------------------

def decode_sms_text(text: str) -> AmlSms:
    """Parse AML SMS text into a version 1 or version 2 record.

    Raises UnimplementedVersion when the `A"ML` header is missing or is
    neither "1" nor "2".
    """
    properties = get_properties(text)
    logger.debug("SMS properties: %s", properties)

    version = properties.get(AML_HEADER)
    if version == "1":
        return _decode_v1(properties, text)
    elif version == "2":
        return _decode_v2(properties)
    else:
        logger.warning("Rejecting SMS with AML header %r", version)
        raise UnimplementedVersion(version)


def sms_bytes_to_text(raw: bytes) -> str:
    """UTF-8 decode an SMS body; invalid UTF-8 yields empty text."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("SMS body is not valid UTF-8 (%d bytes)", len(raw))
        return ""


def decode_sms_data(packed_bytes: bytes) -> AmlSms:
    """Unpack a GSM 7-bit packed SMS body and parse it.

    Bytes that are not valid UTF-8 after unpacking are treated as empty text,
    which fails the header check.
    """
    return decode_sms_text(sms_bytes_to_text(unpack_7bit(packed_bytes)))
