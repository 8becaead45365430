#!/usr/bin/env python3
"""AML HTTPS webhook form parser.

Handsets that deliver AML over HTTPS POST an
`application/x-www-form-urlencoded` body such as::

    v=1&device_number=%2B447477593102&location_latitude=55.85732&...

Only a fixed set of keys is read; unknown keys are skipped and a value that
fails to convert leaves its field unset. Parsing never fails as a whole.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields as dataclass_fields
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import parse_qsl

from aml_fields import millis_to_utc, parse_float, valid_choice

logger = logging.getLogger(__name__)

ACTIVATION_SOURCES = ("call", "sms")
LOCATION_SOURCES = ("gps", "wifi", "cell", "unknown")


@dataclass(frozen=True)
class AmlHttpsData:
    """Decoded AML HTTPS form"""
    v: Optional[str] = None                             # AML version
    emergency_number: Optional[str] = None
    source: Optional[str] = None                        # call / sms
    thunderbird_version: Optional[str] = None
    time: Optional[datetime] = None                     # beginning of call
    gt_location_latitude: Optional[float] = None        # ground truth, testing only
    gt_location_longitude: Optional[float] = None
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    location_time: Optional[datetime] = None
    location_altitude: Optional[float] = None           # metres
    location_floor: Optional[float] = None
    location_source: Optional[str] = None               # gps / wifi / cell / unknown
    location_accuracy: Optional[float] = None           # metres
    location_vertical_accuracy: Optional[float] = None  # metres
    location_confidence: Optional[float] = None
    location_bearing: Optional[float] = None            # degrees
    location_speed: Optional[float] = None              # m/s
    device_number: Optional[str] = None
    device_model: Optional[str] = None
    device_imsi: Optional[str] = None
    device_imei: Optional[str] = None
    device_iccid: Optional[str] = None
    device_languages: Optional[str] = None              # BCP 47, comma separated
    cell_home_mcc: Optional[str] = None
    cell_home_mnc: Optional[str] = None
    cell_network_mcc: Optional[str] = None
    cell_network_mnc: Optional[str] = None
    hmac: Optional[str] = None


def _text(value: str) -> Optional[str]:
    return value or None


def _activation_source(value: str) -> Optional[str]:
    return valid_choice(value.lower(), ACTIVATION_SOURCES)


def _location_source(value: str) -> Optional[str]:
    return valid_choice(value.lower(), LOCATION_SOURCES)


_FLOAT_KEYS = (
    "gt_location_latitude",
    "gt_location_longitude",
    "location_latitude",
    "location_longitude",
    "location_altitude",
    "location_floor",
    "location_accuracy",
    "location_vertical_accuracy",
    "location_confidence",
    "location_bearing",
    "location_speed",
)

# Whitelisted form key -> coercion; every key is also the field name
FIELD_PARSERS: Dict[str, Callable[[str], Any]] = {
    field.name: _text for field in dataclass_fields(AmlHttpsData)
}
FIELD_PARSERS.update({key: parse_float for key in _FLOAT_KEYS})
FIELD_PARSERS.update({
    "source": _activation_source,
    "location_source": _location_source,
    "time": millis_to_utc,
    "location_time": millis_to_utc,
})


def decode_https_form(payload: Union[str, bytes]) -> AmlHttpsData:
    """Parse an AML HTTPS form body into an AmlHttpsData record."""
    values: Dict[str, Any] = {}

    for key, raw_value in parse_qsl(payload, keep_blank_values=True):
        if isinstance(key, bytes):
            key = key.decode("utf-8", errors="replace")
            raw_value = raw_value.decode("utf-8", errors="replace")
        parser = FIELD_PARSERS.get(key)
        if parser is None:
            logger.debug("Ignoring unknown HTTPS key %r", key)
            continue
        values[key] = parser(raw_value.strip())

    logger.debug("HTTPS fields: %s", values)
    return AmlHttpsData(**values)
