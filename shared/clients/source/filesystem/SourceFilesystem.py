import asyncio
import os

from shared.clients.source.SourceInterface import SourceInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Candidate


class SourceFilesystem(SourceInterface):
    """Serves the files below a root folder as vault documents."""

    def __init__(self, helper_config: HelperConfig, root: str | None = None):
        super().__init__(helper_config=helper_config)
        self._root = os.path.abspath(root or helper_config.get_string_val("SOURCE_ROOT"))

    def _get_engine_name(self) -> str:
        return "Filesystem"

    def _list_sync(self) -> list[Candidate]:
        candidates: list[Candidate] = []
        for dirpath, dirnames, filenames in os.walk(self._root):
            # hidden folders (.git, .obsidian, ...) are never part of the vault
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for filename in sorted(filenames):
                if filename.startswith("."):
                    continue
                rel_path = os.path.relpath(os.path.join(dirpath, filename), self._root).replace(os.sep, "/")
                extension = os.path.splitext(filename)[1].lstrip(".")
                candidates.append(Candidate(path=rel_path, extension=extension))
        return candidates

    async def list_candidates(self) -> list[Candidate]:
        candidates = await asyncio.to_thread(self._list_sync)
        self.logging.debug("Found %d files below %s", len(candidates), self._root)
        return candidates

    def _resolve(self, path: str) -> str:
        full_path = os.path.abspath(os.path.join(self._root, path))
        if os.path.commonpath([full_path, self._root]) != self._root:
            raise ValueError(f"Path '{path}' is outside of the source root.")
        return full_path

    def _read_sync(self, path: str) -> str:
        with open(self._resolve(path), "r", encoding="utf-8") as f:
            return f.read()

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self._read_sync, path)
