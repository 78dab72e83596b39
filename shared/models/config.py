from pydantic import BaseModel

from shared.helper.HelperConfig import HelperConfig


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required for a env setting.

    Attributes:
        env_key (str): The key/name of the environment variable to read.
        val_type (str): The expected type of the environment variable's value. Supported types are "string", "number", "bool", and "list".
        default (str | int | bool | list | None): An optional default value if the environment variable is not set. If None, the variable is required and an error will be raised if it is not set.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | list | None = None


class FilterConfig(BaseModel):
    """
    Filter lists deciding which candidate documents are indexed.

    Attributes:
        whitelist_folders (list[str]): Only documents below one of these folders are indexed. Empty means all folders.
        whitelist_extensions (list[str]): Only documents with one of these extensions (with leading dot) are indexed. Empty means all extensions.
        blacklist_files (list[str]): Paths or glob patterns that are never indexed.
    """

    whitelist_folders: list[str] = []
    whitelist_extensions: list[str] = [".md"]
    blacklist_files: list[str] = []

    @classmethod
    def from_helper_config(cls, helper_config: HelperConfig) -> "FilterConfig":
        """Build the filter lists from INDEX_* environment variables, keeping the defaults for unset ones."""
        defaults = cls()
        return cls(
            whitelist_folders=helper_config.get_list_val("INDEX_WHITELIST_FOLDERS", default=defaults.whitelist_folders),
            whitelist_extensions=helper_config.get_list_val("INDEX_WHITELIST_EXTENSIONS", default=defaults.whitelist_extensions),
            blacklist_files=helper_config.get_list_val("INDEX_BLACKLIST_FILES", default=defaults.blacklist_files),
        )
