"""Tests for GSM 7-bit unpacking."""

import pytest

from gsm_7bit import unpack_7bit


def test_unpack_known_text():
    # "hellohello" packed: 10 septets in 9 octets
    assert unpack_7bit(bytes.fromhex("E8329BFD4697D9EC37")) == b"hellohello"


def test_unpack_empty():
    assert unpack_7bit(b"") == b""


def test_unpack_seven_octets_flushes_eighth_septet():
    # 8 septets of 'A' (0x41) fill exactly 7 octets
    packed = bytes.fromhex("C16030180C0683")
    assert unpack_7bit(packed) == b"AAAAAAAA"


@pytest.mark.parametrize("length", [1, 6, 7, 8, 13, 14, 100])
def test_unpack_is_total_and_masked(length):
    packed = bytes((i * 37 + 200) & 0xFF for i in range(length))
    out = unpack_7bit(packed)
    assert len(out) == length + length // 7
    assert all(unit <= 0x7F for unit in out)


def test_unpack_all_ones():
    out = unpack_7bit(b"\xff" * 7)
    assert out == b"\x7f" * 8
