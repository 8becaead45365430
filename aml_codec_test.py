"""Tests for the high-level AML codec and record mapping."""

import base64
from dataclasses import fields
from datetime import datetime, timezone

import pytest

from aml_codec import (
    TRANSPORT_HTTPS,
    TRANSPORT_SMS_BASE64,
    TRANSPORT_SMS_BINARY,
    TRANSPORT_SMS_TEXT,
    AmlData,
    RawMessage,
    decode_message,
    from_base64_sms,
    from_data_sms,
    from_https,
    from_https_record,
    from_sms_record,
    from_text_sms,
)
from aml_errors import AmlError, InvalidEncoding, UnimplementedVersion
from aml_https import AmlHttpsData
from aml_sms import AmlSmsV1, AmlSmsV2
from aml_https_test import HTTPS_FORM
from aml_sms_test import SMS_DATA_HEX, SMS_V1, SMS_V2


def test_text_sms_v1():
    aml = from_text_sms(SMS_V1)
    assert aml.transport == "sms"
    assert aml.version == "1"
    assert aml.latitude == 48.82639
    assert aml.longitude == -2.36619
    assert aml.accuracy == 52.0
    assert aml.confidence == 68.0
    assert aml.positioning_method == "gps"
    assert aml.imsi == "208201771948415"
    assert aml.imei == "353472104343540"
    assert aml.network_mcc == "208"
    assert aml.network_mnc == "20"
    assert aml.time_of_positioning == datetime(2019, 11, 12, 11, 29, 28, tzinfo=timezone.utc)
    # no V1 counterpart
    assert aml.emergency_number is None
    assert aml.home_mcc is None
    assert aml.language is None
    assert aml.altitude is None


def test_text_sms_v2():
    aml = from_text_sms(SMS_V2)
    assert aml.transport == "sms"
    assert aml.version == "2"
    assert aml.emergency_number == "+15555555555"
    assert aml.latitude == -37.42175
    assert aml.longitude == -122.08461
    assert aml.accuracy == 2000.1
    assert aml.altitude == -100.1
    assert aml.vertical_accuracy == 100.1
    assert aml.network_mcc == "310"
    assert aml.network_mnc == "260"
    assert aml.home_mcc == "310"
    assert aml.home_mnc == "260"
    assert aml.language == "en-US"
    assert aml.beginning_of_call == datetime.fromtimestamp(1593187189, tz=timezone.utc)
    assert aml.imsi is None


def test_data_sms():
    aml = from_data_sms(bytes.fromhex(SMS_DATA_HEX))
    assert aml.transport == "sms"
    assert aml.latitude == 37.42175
    assert aml.imei == "358239059042542"


def test_base64_sms():
    encoded = base64.b64encode(bytes.fromhex(SMS_DATA_HEX))
    assert from_base64_sms(encoded) == from_data_sms(bytes.fromhex(SMS_DATA_HEX))
    assert from_base64_sms(encoded.decode("ascii")).latitude == 37.42175


@pytest.mark.parametrize("data", ["not base64!", "QUJD*",b"\xff\xfe", "abc"])
def test_invalid_base64(data):
    with pytest.raises(InvalidEncoding):
        from_base64_sms(data)


def test_invalid_encoding_is_an_aml_error():
    with pytest.raises(AmlError):
        from_base64_sms("@@@@")


def test_https():
    aml = from_https(HTTPS_FORM)
    assert aml.transport == "https"
    assert aml.version == "1"
    assert aml.positioning_method == "gps"
    assert aml.latitude == 55.85732
    assert aml.longitude == -4.26325
    assert aml.accuracy == 10.4
    assert aml.floor == 5.0
    assert aml.device_number == "+447477593102"
    assert aml.model == "ABC ABC Detente 530"
    assert aml.imsi == "234159176307582"
    assert aml.imei == "354773072099116"
    assert aml.home_mcc == "234"
    assert aml.home_mnc == "15"
    assert aml.network_mcc == "234"
    assert aml.network_mnc == "15"
    assert aml.confidence is None


@pytest.mark.parametrize("code,method", [
    ("G", "gps"),
    ("W", "wifi"),
    ("C", "cell"),
    ("U", "unknown"),
    ("F", "fused"),
])
def test_sms_positioning_method_mapping(code, method):
    assert from_sms_record(AmlSmsV2(positioning_method=code)).positioning_method == method


def test_empty_records_map_to_empty_aml_data():
    for aml, transport in [
        (from_sms_record(AmlSmsV1()), "sms"),
        (from_sms_record(AmlSmsV2()), "sms"),
        (from_https_record(AmlHttpsData()), "https"),
    ]:
        assert aml.transport == transport
        assert all(getattr(aml, f.name) is None for f in fields(AmlData) if f.name != "transport")


def test_https_only_fields():
    aml = from_https_record(AmlHttpsData(
        source="call",
        location_bearing=90.0,
        location_speed=1.5,
        device_iccid="8944",
        device_languages="en-GB",
    ))
    assert aml.source_of_activation == "call"
    assert aml.bearing == 90.0
    assert aml.speed == 1.5
    assert aml.iccid == "8944"
    assert aml.language == "en-GB"


def test_from_sms_record_rejects_other_types():
    with pytest.raises(TypeError):
        from_sms_record(AmlHttpsData())


def test_decode_message_dispatch():
    packed = bytes.fromhex(SMS_DATA_HEX)
    assert decode_message(RawMessage(SMS_V1, TRANSPORT_SMS_TEXT)) == from_text_sms(SMS_V1)
    assert decode_message(RawMessage(SMS_V1.encode(), TRANSPORT_SMS_TEXT)) == from_text_sms(SMS_V1)
    assert decode_message(RawMessage(packed, TRANSPORT_SMS_BINARY)) == from_data_sms(packed)
    assert decode_message(RawMessage(base64.b64encode(packed), TRANSPORT_SMS_BASE64)).latitude == 37.42175
    assert decode_message(RawMessage(HTTPS_FORM, TRANSPORT_HTTPS)).transport == "https"


def test_decode_message_text_bytes_with_invalid_utf8_has_no_header():
    with pytest.raises(UnimplementedVersion):
        decode_message(RawMessage(b'A"ML=1;lt=1.5;ei=12\xff', TRANSPORT_SMS_TEXT))


@pytest.mark.parametrize("payload", ["QVGT2Yvt€", "QVGT2Yvt"])
def test_decode_message_binary_rejects_text(payload):
    with pytest.raises(InvalidEncoding):
        decode_message(RawMessage(payload, TRANSPORT_SMS_BINARY))


def test_decode_message_unknown_transport():
    with pytest.raises(ValueError):
        decode_message(RawMessage("x", "fax"))


def test_decode_message_propagates_version_error():
    with pytest.raises(UnimplementedVersion):
        decode_message(RawMessage('A"ML=3;lt=1', TRANSPORT_SMS_TEXT))


def test_to_dict_skips_absent_fields():
    result = from_text_sms('A"ML=2;et=0;lo=1.5')
    assert result.to_dict() == {
        "transport": "sms",
        "version": "2",
        "beginning_of_call": "1970-01-01T00:00:00+00:00",
        "latitude": 1.5,
    }
