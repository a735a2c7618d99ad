"""Tests for device response parsing."""

import pytest

from brainboxes_ed_mcp.errors import (
    DeviceIgnoredError,
    DeviceRejectedError,
    ProtocolMismatchError,
    ResponseError,
)
from brainboxes_ed_mcp.protocol.parser import (
    parse_input_count,
    parse_line_states,
    parse_set_all_outputs,
    parse_set_line,
)


def test_line_states_from_mask():
    """Bit 0 of the mask is line 0."""
    assert parse_line_states("@01", ">ff", 8) == [1] * 8
    assert parse_line_states("@01", ">ff", 16) == [1] * 8 + [0] * 8
    assert parse_line_states("@01", ">0001", 4) == [1, 0, 0, 0]
    assert parse_line_states("@01", ">8000", 16) == [0] * 15 + [1]


def test_line_states_rejects_wrong_prefix():
    with pytest.raises(ProtocolMismatchError) as exc_info:
        parse_line_states("@01", "?", 16)
    assert "?" in str(exc_info.value)
    assert exc_info.value.command == "@01"
    assert exc_info.value.response == "?"


def test_line_states_rejects_non_hex_mask():
    with pytest.raises(ProtocolMismatchError):
        parse_line_states("@01", ">zz", 16)
    with pytest.raises(ProtocolMismatchError):
        parse_line_states("@01", ">", 16)


def test_line_states_rejects_loose_int_syntax():
    """Signs, spaces, prefixes and underscores are not part of a hex mask."""
    for response in (">-1", "> 0x3", ">0x3", ">+f", ">f_f", ">ff "):
        with pytest.raises(ProtocolMismatchError):
            parse_line_states("@01", response, 16)


def test_set_line():
    """Only a bare '>' is success."""
    assert parse_set_line("#01B101", ">") is True
    for response in ("?", "!", ">00", ""):
        with pytest.raises(ProtocolMismatchError):
            parse_set_line("#01B101", response)


def test_set_all_outputs_success():
    assert parse_set_all_outputs("@0155", ">") is True


def test_set_all_outputs_invalid():
    """'?' is reported as an INVALID command."""
    with pytest.raises(DeviceRejectedError) as exc_info:
        parse_set_all_outputs("@0155", "?")
    assert "INVALID" in str(exc_info.value)
    assert "@0155" in str(exc_info.value)


def test_set_all_outputs_ignored():
    """Anything else is reported as IGNORED."""
    with pytest.raises(DeviceIgnoredError) as exc_info:
        parse_set_all_outputs("@0155", "@")
    assert "IGNORED" in str(exc_info.value)


def test_rejected_and_ignored_are_distinct():
    assert not issubclass(DeviceRejectedError, DeviceIgnoredError)
    assert not issubclass(DeviceIgnoredError, DeviceRejectedError)
    assert issubclass(DeviceRejectedError, ResponseError)
    assert issubclass(DeviceIgnoredError, ResponseError)


def test_input_count():
    """The counter value is decimal after the '!AA' prefix."""
    assert parse_input_count("#010A", "!01007", 1) == 7
    assert parse_input_count("#010", "!0165535", 1) == 65535
    assert parse_input_count("#1a0", "!1a12", 0x1A) == 12


def test_input_count_rejects_other_prefix():
    for response in ("?", ">007", "!02007", "!01", "!01x7"):
        with pytest.raises(ProtocolMismatchError):
            parse_input_count("#010", response, 1)
