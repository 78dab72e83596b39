"""Parsing of newline-delimited ``data: <json>`` stream lines."""

import json

from shared.errors import ParseError


def extract_sse_data(line: str) -> str | None:
    """Return the payload of a ``data:`` line, or None for any other line."""
    if not line.startswith("data:"):
        return None
    data = line[5:]
    return data[1:] if data.startswith(" ") else data


def parse_stream_payload(data: str) -> dict:
    """Decode the JSON payload of a stream line.

    Raises:
        ParseError: If the payload is not a JSON object.
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON in stream payload: {exc}") from exc
    if not isinstance(payload, dict):
        raise ParseError(f"Stream payload is not an object: {data[:80]!r}")
    return payload
