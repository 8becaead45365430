#!/usr/bin/env python3
"""High-level AML codec.

Turns any AML delivery (binary SMS, base64 SMS, text SMS or HTTPS form) into
a single `AmlData` record. Transport-specific parsing lives in `aml_sms` and
`aml_https`; this module only routes the payload and maps the transport
record onto the common field names.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Union

from aml_errors import InvalidEncoding
from aml_https import AmlHttpsData, decode_https_form
from aml_sms import (
    AmlSms,
    AmlSmsV1,
    AmlSmsV2,
    decode_sms_data,
    decode_sms_text,
    sms_bytes_to_text,
)

logger = logging.getLogger("aml")

# RawMessage transport tags
TRANSPORT_SMS_BINARY = "sms-binary"
TRANSPORT_SMS_BASE64 = "sms-base64"
TRANSPORT_SMS_TEXT = "sms-text"
TRANSPORT_HTTPS = "https"

# SMS single letter positioning codes -> HTTPS vocabulary
POSITIONING_METHODS = {
    "G": "gps",
    "W": "wifi",
    "C": "cell",
    "U": "unknown",
    "F": "fused",
}


@dataclass(frozen=True)
class RawMessage:
    """Undecoded AML payload tagged with the transport it arrived on"""
    payload: Union[bytes, str]
    transport: str


@dataclass(frozen=True)
class AmlData:
    """Transport independent AML record"""
    transport: str                                 # "sms" or "https"
    version: Optional[str] = None
    emergency_number: Optional[str] = None
    source_of_activation: Optional[str] = None
    beginning_of_call: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    time_of_positioning: Optional[datetime] = None
    altitude: Optional[float] = None
    floor: Optional[float] = None
    positioning_method: Optional[str] = None       # gps / wifi / cell / unknown / fused
    accuracy: Optional[float] = None
    vertical_accuracy: Optional[float] = None
    confidence: Optional[float] = None
    bearing: Optional[float] = None
    speed: Optional[float] = None
    device_number: Optional[str] = None
    model: Optional[str] = None
    imsi: Optional[str] = None
    imei: Optional[str] = None
    iccid: Optional[str] = None
    home_mcc: Optional[str] = None
    home_mnc: Optional[str] = None
    network_mcc: Optional[str] = None
    network_mnc: Optional[str] = None
    language: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Populated fields only, datetimes as ISO-8601 strings."""
        result: Dict[str, Any] = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            if isinstance(value, datetime):
                value = value.isoformat()
            result[key] = value
        return result


# ---------------------------------------------------------------------------
# Record mapping
# ---------------------------------------------------------------------------

def _positioning_method(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    return POSITIONING_METHODS.get(code)


def _code_text(code: Optional[int]) -> Optional[str]:
    if code is None:
        return None
    return str(code)


def from_sms_record(sms: AmlSms) -> AmlData:
    """Map a version 1 or version 2 SMS record onto AmlData."""
    if isinstance(sms, AmlSmsV1):
        return AmlData(
            transport="sms",
            version=sms.header,
            latitude=sms.latitude,
            longitude=sms.longitude,
            accuracy=sms.radius,
            time_of_positioning=sms.time_of_positioning,
            confidence=sms.level_of_confidence,
            positioning_method=_positioning_method(sms.positioning_method),
            imsi=sms.imsi,
            imei=sms.imei,
            network_mcc=_code_text(sms.network_mcc),
            network_mnc=_code_text(sms.network_mnc),
        )
    elif isinstance(sms, AmlSmsV2):
        return AmlData(
            transport="sms",
            version=sms.header,
            emergency_number=sms.emergency_number,
            beginning_of_call=sms.beginning_of_call,
            latitude=sms.latitude,
            longitude=sms.longitude,
            accuracy=sms.accuracy,
            time_of_positioning=sms.time_of_positioning,
            confidence=sms.level_of_confidence,
            altitude=sms.altitude,
            vertical_accuracy=sms.vertical_accuracy,
            positioning_method=_positioning_method(sms.positioning_method),
            imei=sms.imei,
            network_mcc=sms.network_mcc,
            network_mnc=sms.network_mnc,
            home_mcc=sms.home_mcc,
            home_mnc=sms.home_mnc,
            language=sms.language,
        )
    else:
        raise TypeError(f"Not an AML SMS record: {type(sms).__name__}")


def from_https_record(https: AmlHttpsData) -> AmlData:
    """Map a decoded HTTPS form onto AmlData."""
    return AmlData(
        transport="https",
        version=https.v,
        emergency_number=https.emergency_number,
        source_of_activation=https.source,
        beginning_of_call=https.time,
        latitude=https.location_latitude,
        longitude=https.location_longitude,
        time_of_positioning=https.location_time,
        altitude=https.location_altitude,
        floor=https.location_floor,
        positioning_method=https.location_source,
        accuracy=https.location_accuracy,
        vertical_accuracy=https.location_vertical_accuracy,
        confidence=https.location_confidence,
        bearing=https.location_bearing,
        speed=https.location_speed,
        device_number=https.device_number,
        model=https.device_model,
        imsi=https.device_imsi,
        imei=https.device_imei,
        iccid=https.device_iccid,
        home_mcc=https.cell_home_mcc,
        home_mnc=https.cell_home_mnc,
        network_mcc=https.cell_network_mcc,
        network_mnc=https.cell_network_mnc,
        language=https.device_languages,
    )


# ---------------------------------------------------------------------------
# Transport entry points
# ---------------------------------------------------------------------------

def from_text_sms(text: str) -> AmlData:
    logger.info("Decoding AML text SMS (%d chars)", len(text))
    return from_sms_record(decode_sms_text(text))


def from_data_sms(packed_bytes: bytes) -> AmlData:
    """Decode a GSM 7-bit packed AML SMS body."""
    logger.info("Decoding AML data SMS (%d bytes)", len(packed_bytes))
    logger.debug("SMS payload (hex): %s", packed_bytes.hex().upper())
    return from_sms_record(decode_sms_data(packed_bytes))


def from_base64_sms(data: Union[str, bytes]) -> AmlData:
    """Decode a base64 wrapped, GSM 7-bit packed AML SMS body.

    Raises InvalidEncoding when `data` is not valid base64.
    """
    try:
        packed_bytes = base64.b64decode(data, validate=True)
    except (ValueError, binascii.Error) as exc:
        logger.warning("Invalid base64 SMS payload: %s", exc)
        raise InvalidEncoding(f"Invalid base64 SMS payload: {exc}") from exc
    return from_data_sms(packed_bytes)


def from_https(payload: Union[str, bytes]) -> AmlData:
    """Decode an AML HTTPS form body. The `hmac` field is not checked here."""
    logger.info("Decoding AML HTTPS payload (%d bytes)", len(payload))
    return from_https_record(decode_https_form(payload))


def decode_message(message: RawMessage) -> AmlData:
    """Route a RawMessage to the decoder for its transport."""
    transport = message.transport
    payload = message.payload

    if transport == TRANSPORT_SMS_BINARY:
        # text form of a binary SMS is base64, tagged sms-base64
        if isinstance(payload, str):
            logger.warning("Rejecting text payload tagged %s", transport)
            raise InvalidEncoding("Binary SMS payload must be bytes, not text")
        return from_data_sms(payload)
    elif transport == TRANSPORT_SMS_BASE64:
        return from_base64_sms(payload)
    elif transport == TRANSPORT_SMS_TEXT:
        if isinstance(payload, bytes):
            payload = sms_bytes_to_text(payload)
        return from_text_sms(payload)
    elif transport == TRANSPORT_HTTPS:
        return from_https(payload)
    else:
        raise ValueError(f"Unsupported AML transport: {transport!r}")
