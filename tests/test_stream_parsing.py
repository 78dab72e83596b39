"""Tests for stream line parsing."""

import pytest

from shared.errors import ParseError
from shared.helper.HelperStream import extract_sse_data, parse_stream_payload


class TestExtractSSEData:
    def test_with_space(self):
        assert extract_sse_data('data: {"x": 1}') == '{"x": 1}'

    def test_without_space(self):
        assert extract_sse_data("data:[DONE]") == "[DONE]"

    def test_other_lines(self):
        assert extract_sse_data("event: message_start") is None
        assert extract_sse_data("") is None
        assert extract_sse_data(": keep-alive") is None


class TestParseStreamPayload:
    def test_object(self):
        assert parse_stream_payload('{"type": "ping"}') == {"type": "ping"}

    def test_invalid_json(self):
        with pytest.raises(ParseError):
            parse_stream_payload("{not json")

    def test_non_object(self):
        with pytest.raises(ParseError):
            parse_stream_payload("[1, 2]")
