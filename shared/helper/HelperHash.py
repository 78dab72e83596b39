"""Content hashing for change detection.

The hash is a 32-bit signed rolling hash (``h = (h << 5) - h + code``) over the
UTF-16 code units of the text, so values are stable across runs and match
indexes written by other clients of the same vault. It is not cryptographic.
"""

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _utf16_code_units(text: str) -> list[int]:
    raw = text.encode("utf-16-le", errors="surrogatepass")
    return [raw[i] | (raw[i + 1] << 8) for i in range(0, len(raw), 2)]


def _to_signed_32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def rolling_hash(text: str) -> int:
    """Compute the 32-bit signed rolling hash of a text.

    Args:
        text (str): The text to hash.

    Returns:
        int: The hash, in the range [-2**31, 2**31).
    """
    h = 0
    for code in _utf16_code_units(text):
        h = _to_signed_32((h << 5) - h + code)
    return h


def to_base36(value: int) -> str:
    """Render an integer in lower-case base 36, with a leading '-' for negatives."""
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return sign + "".join(reversed(digits))


def content_hash(text: str) -> str:
    """Return the base-36 change-detection hash of a document's content.

    Args:
        text (str): The full document text.

    Returns:
        str: The hash string (e.g. "-1a2b3c").
    """
    return to_base36(rolling_hash(text))
