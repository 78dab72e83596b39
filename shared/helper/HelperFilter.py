"""Candidate filtering by blacklist pattern, extension whitelist and folder whitelist."""

import re

from shared.models.config import FilterConfig


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


def _glob_to_regex(pattern: str) -> re.Pattern:
    """Compile a glob with ``*`` (any characters) and ``?`` (one character) to an anchored regex."""
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("^" + "".join(parts) + "$", re.DOTALL)


def matches_pattern(file_path: str, pattern: str) -> bool:
    """Match a file path against a blacklist pattern.

    Patterns without wildcards match the exact path or any path ending in
    ``/<pattern>``. Patterns with ``*`` or ``?`` are matched as an anchored glob
    against the whole path.

    Args:
        file_path (str): The vault-relative file path.
        pattern (str): The blacklist entry.

    Returns:
        bool: True if the path matches.
    """
    normalized_path = _normalize(file_path)
    normalized_pattern = _normalize(pattern)

    if "*" not in normalized_pattern and "?" not in normalized_pattern:
        return normalized_path == normalized_pattern or normalized_path.endswith("/" + normalized_pattern)

    return _glob_to_regex(normalized_pattern).match(normalized_path) is not None


def _parent_folder(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


def should_index_file(file_path: str, extension: str, filter_config: FilterConfig) -> bool:
    """Decide whether a candidate document passes the configured filters.

    Order: blacklist (excludes unconditionally), extension whitelist, folder
    whitelist. Empty whitelists impose no constraint.

    Args:
        file_path (str): The vault-relative file path.
        extension (str): The file extension without leading dot (e.g. "md").
        filter_config (FilterConfig): The filter lists to apply.

    Returns:
        bool: True if the document should be indexed.
    """
    for blacklist_pattern in filter_config.blacklist_files:
        if matches_pattern(file_path, blacklist_pattern):
            return False

    if filter_config.whitelist_extensions:
        if "." + extension not in filter_config.whitelist_extensions:
            return False

    if filter_config.whitelist_folders:
        normalized_path = _normalize(file_path)
        parent = _parent_folder(normalized_path)
        for folder in filter_config.whitelist_folders:
            normalized_folder = _normalize(folder)
            if normalized_path.startswith(normalized_folder + "/") or normalized_folder == parent:
                return True
        return False

    return True
