"""Tests for the uniform value model and reply rendering."""

import pytest
from pydantic import TypeAdapter, ValidationError

from polydb.core.values import (
    INT64_MAX,
    INT64_MIN,
    NULL,
    BinaryHexValue,
    BoolValue,
    FloatValue,
    IntegerValue,
    TextValue,
    Value,
    binary_preview,
    count_or_text,
    integer_or_text,
    render_json_document,
    render_reply,
)


@pytest.mark.unit
class TestVariants:
    def test_null(self):
        assert NULL.to_json() is None
        assert NULL.display() == ""

    def test_bool(self):
        assert BoolValue(value=True).to_json() is True
        assert BoolValue(value=False).display() == "false"

    def test_integer_bounds_enforced(self):
        assert IntegerValue(value=INT64_MAX).value == INT64_MAX
        assert IntegerValue(value=INT64_MIN).value == INT64_MIN
        with pytest.raises(ValidationError):
            IntegerValue(value=INT64_MAX + 1)

    def test_float(self):
        assert FloatValue(value=1.5).to_json() == 1.5
        assert FloatValue(value=1.5).display() == "1.5"

    def test_values_are_frozen(self):
        value = TextValue(value="a")
        with pytest.raises(ValidationError):
            value.value = "b"

    def test_discriminated_union_round_trip(self):
        adapter = TypeAdapter(Value)
        parsed = adapter.validate_python({"kind": "integer", "value": 7})
        assert parsed == IntegerValue(value=7)
        parsed = adapter.validate_python(
            {"kind": "binary", "hex": "00FF", "byte_length": 2}
        )
        assert isinstance(parsed, BinaryHexValue)


@pytest.mark.unit
class TestIntegerOrText:
    def test_in_range(self):
        assert integer_or_text(42) == IntegerValue(value=42)

    def test_above_int64_is_exact_text(self):
        big = 2**64 - 1
        assert integer_or_text(big) == TextValue(value="18446744073709551615")

    def test_below_int64_is_exact_text(self):
        assert integer_or_text(INT64_MIN - 1) == TextValue(value=str(INT64_MIN - 1))


@pytest.mark.unit
class TestCountOrText:
    def test_none(self):
        assert count_or_text(None) is None

    def test_small_count_is_int(self):
        assert count_or_text(1024) == 1024

    def test_oversized_count_never_wraps(self):
        assert count_or_text(2**63) == "9223372036854775808"

    def test_decimal_string_input(self):
        assert count_or_text("17") == 17


@pytest.mark.unit
class TestBinaryPreview:
    def test_short_payload_untruncated(self):
        value = binary_preview(b"\x01\xab")
        assert value.hex == "01AB"
        assert value.truncated is False
        assert value.byte_length == 2
        assert value.display() == "0x01AB"

    def test_long_payload_truncated_with_true_length(self):
        value = binary_preview(bytes(range(40)))
        assert len(value.hex) == 64
        assert value.truncated is True
        assert value.byte_length == 40
        assert value.display().endswith("... (40 bytes)")

    def test_exactly_threshold_is_not_truncated(self):
        value = binary_preview(b"\x00" * 32)
        assert value.truncated is False

    def test_unrecognized_marker(self):
        value = binary_preview(b"\xff" * 20, 16, unrecognized=True)
        assert value.display() == "[BLOB: 0x" + "FF" * 16 + "...]"


@pytest.mark.unit
class TestRenderReply:
    def test_nil(self):
        assert render_reply(None) == "(nil)"

    def test_status_word(self):
        assert render_reply(b"OK") == "OK"

    def test_integer(self):
        assert render_reply(3) == "3"

    def test_empty_array(self):
        assert render_reply([]) == "(empty array)"

    def test_flat_array(self):
        assert render_reply([b"a", b"b"]) == "1) a\n2) b"

    def test_nested_array_indented(self):
        rendered = render_reply([b"a", [b"x", None]])
        assert rendered == "1) a\n2) 1) x\n   2) (nil)"

    def test_map(self):
        assert render_reply({b"f": b"v", b"g": 1}) == "1) f => v\n2) g => 1"

    def test_error_object(self):
        assert render_reply(ValueError("WRONGTYPE bad")) == "(error) WRONGTYPE bad"

    def test_undecodable_bytes_fall_back_to_repr(self):
        assert render_reply(b"\xff\xfe") == repr(b"\xff\xfe")

    def test_unknown_object_falls_back_to_repr(self):
        marker = object()
        assert render_reply(marker) == repr(marker)


@pytest.mark.unit
def test_render_json_document_compact_and_ordered():
    assert render_json_document({"b": 1, "a": "é"}) == '{"b":1,"a":"é"}'
