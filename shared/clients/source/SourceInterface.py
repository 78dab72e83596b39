from abc import ABC, abstractmethod

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Candidate


class SourceInterface(ABC):
    """Document source consumed by the indexing pipeline."""

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config

    def get_engine_name(self) -> str:
        """
        Returns the name of the source engine in lowercase. E.g. "filesystem"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    @abstractmethod
    async def list_candidates(self) -> list[Candidate]:
        """
        Lists every document the source can offer, unfiltered.

        Returns:
            list[Candidate]: One entry per document, keyed by vault-relative path.
        """
        pass

    @abstractmethod
    async def read(self, path: str) -> str:
        """
        Reads the full text of a document.

        Args:
            path (str): The vault-relative path as returned by list_candidates().

        Returns:
            str: The document text.

        Raises:
            Exception: If the document cannot be read.
        """
        pass
