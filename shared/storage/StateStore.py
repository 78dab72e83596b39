"""Owner of the persisted application state.

All persisted sections (provider settings, filter lists, vector index,
threads) live in a single JSON document. Callers never read-modify-write the
whole document: they get or set one named section, and every write goes
through a lock and an atomic file replace so concurrent saves of different
sections cannot lose each other's updates.
"""

import asyncio
import copy
import json
import os
import tempfile
from typing import Any

from shared.helper.HelperConfig import HelperConfig

SECTION_PROVIDER = "provider"
SECTION_FILTERS = "filters"
SECTION_VECTOR_INDEX = "vectorIndex"
SECTION_THREADS = "threads"


class StateStore:
    def __init__(self, helper_config: HelperConfig, path: str | None = None) -> None:
        self.logging = helper_config.get_logger()
        default_path = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "data", "state.json")
        self._path = path or helper_config.get_string_val("STATE_FILE", default=default_path)
        self._lock = asyncio.Lock()
        self._data: dict[str, Any] | None = None

    def get_path(self) -> str:
        return self._path

    ##########################################
    ################ LOAD ####################
    ##########################################

    def _read_file(self) -> dict[str, Any]:
        if not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            self.logging.error("Could not read state file %s: %s. Starting with empty state.", self._path, exc)
            return {}
        if not isinstance(data, dict):
            self.logging.error("State file %s does not contain an object. Starting with empty state.", self._path)
            return {}
        return data

    async def load(self) -> None:
        """Read the state file into memory. A missing or unreadable file yields an empty state."""
        async with self._lock:
            self._data = self._read_file()
            self.logging.debug("Loaded state from %s (sections: %s)", self._path, sorted(self._data.keys()))

    ##########################################
    ############## SECTIONS ##################
    ##########################################

    async def get_section(self, name: str, default: Any = None) -> Any:
        """Return a deep copy of one section, or `default` if it is not stored.

        Args:
            name (str): Section name (e.g. "threads").
            default (Any): Value returned when the section is absent.
        """
        async with self._lock:
            if self._data is None:
                self._data = self._read_file()
            if name not in self._data:
                return default
            return copy.deepcopy(self._data[name])

    async def set_section(self, name: str, value: Any) -> None:
        """Replace one section and write the state file atomically.

        The store takes ownership of `value`; callers pass freshly built data
        and must not mutate it afterwards. Serialisation and the file replace
        run in a worker thread so the event loop keeps serving streams while a
        large vector index is written.

        Args:
            name (str): Section name.
            value (Any): JSON-serialisable value.
        """
        async with self._lock:
            if self._data is None:
                self._data = self._read_file()
            self._data[name] = value
            await asyncio.to_thread(self._write_file, dict(self._data))

    def _write_file(self, data: dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
