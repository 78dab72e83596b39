"""Environment-backed settings for the server, the runner and every client."""

import logging
import os
from typing import Any

from shared.errors import ConfigurationError

TRUE_VALUES = ("true", "1", "yes", "on")


class HelperConfig:
    """Reads settings from environment variables.

    Keys are case-insensitive (looked up upper-cased). An empty variable counts
    as unset. Passing default=None makes a key required: reading it while unset
    raises ConfigurationError.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _read_raw(self, key: str, default: Any) -> tuple[str, str | None]:
        key = key.upper()
        raw = (os.getenv(key) or "").strip() or None
        if raw is None and default is None:
            raise ConfigurationError(f"Environment variable '{key}' is not set.")
        return key, raw

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string setting, surrounding whitespace removed."""
        _, raw = self._read_raw(key, default)
        return raw if raw is not None else default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric setting; "3" gives an int, "0.5" a float.

        Raises:
            ConfigurationError: If the key is required and unset, or not a number.
        """
        key, raw = self._read_raw(key, default)
        if raw is None:
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ConfigurationError(f"Environment variable '{key}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a flag; true, 1, yes and on (any case) are True, anything else False."""
        _, raw = self._read_raw(key, default)
        if raw is None:
            return default
        return raw.lower() in TRUE_VALUES

    def get_list_val(self, key: str, default: list[str] | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a list written as "[elem1,elem2,...]".

        Elements are stripped and blank ones dropped, so "[]" is the empty list.

        Args:
            key (str): Environment variable name.
            default (list[str] | None): Returned (as a copy) when the variable is unset.
            separator (str): Element delimiter inside the brackets.
            element_type (type): Conversion applied to every element.

        Raises:
            ConfigurationError: If the key is required and unset, lacks the
                surrounding brackets, or has an element element_type rejects.
        """
        key, raw = self._read_raw(key, default)
        if raw is None:
            return list(default)
        if not (raw.startswith("[") and raw.endswith("]")):
            raise ConfigurationError(f"Environment variable '{key}' must look like '[elem1{separator}elem2]'. Got: '{raw}'")

        elements = [part.strip() for part in raw[1:-1].split(separator) if part.strip()]
        try:
            return [element_type(element) for element in elements]
        except ValueError as e:
            raise ConfigurationError(f"Environment variable '{key}' has an invalid {element_type.__name__} element: {e}")

    def get_logger(self) -> logging.Logger:
        return self._logger
