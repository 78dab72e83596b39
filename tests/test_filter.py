"""Tests for blacklist / whitelist filtering of candidates."""

import pytest

from shared.helper.HelperFilter import matches_pattern, should_index_file
from shared.models.config import FilterConfig


class TestMatchesPattern:
    def test_exact_path(self):
        assert matches_pattern("notes/todo.md", "notes/todo.md")

    def test_plain_pattern_matches_trailing_component(self):
        assert matches_pattern("notes/todo.md", "todo.md")
        assert not matches_pattern("notes/mytodo.md", "todo.md")

    def test_star_wildcard(self):
        assert matches_pattern("private/diary.md", "private/*")
        assert matches_pattern("a/b/c.tmp.md", "*.tmp.md")
        assert not matches_pattern("public/diary.md", "private/*")

    def test_question_mark_matches_one_character(self):
        assert matches_pattern("day1.md", "day?.md")
        assert not matches_pattern("day10.md", "day?.md")

    def test_wildcard_pattern_is_anchored(self):
        assert not matches_pattern("archive/private/x.md", "private/*")

    def test_regex_characters_are_literal(self):
        assert matches_pattern("notes/a+b.md", "*a+b.md")
        assert not matches_pattern("notes/aab.md", "*a+b.md")

    def test_backslashes_are_normalized(self):
        assert matches_pattern("notes\\todo.md", "notes/todo.md")


class TestShouldIndexFile:
    def test_glob_blacklist_keeps_plain_name(self):
        config = FilterConfig(blacklist_files=["*.excalidraw.md"])
        assert not should_index_file("Drawing.excalidraw.md", "md", config)
        assert not should_index_file("sketches/Drawing.excalidraw.md", "md", config)
        assert should_index_file("Drawing.md", "md", config)

    def test_defaults_accept_markdown_only(self):
        config = FilterConfig()
        assert should_index_file("a.md", "md", config)
        assert not should_index_file("a.txt", "txt", config)

    def test_blacklist_beats_whitelists(self):
        config = FilterConfig(whitelist_folders=["notes"], blacklist_files=["notes/secret.md"])
        assert not should_index_file("notes/secret.md", "md", config)
        assert should_index_file("notes/public.md", "md", config)

    def test_empty_extension_whitelist_accepts_everything(self):
        config = FilterConfig(whitelist_extensions=[])
        assert should_index_file("data.csv", "csv", config)

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("projects/a.md", True),
            ("projects/sub/b.md", True),
            ("projects-old/c.md", False),
            ("d.md", False),
        ],
    )
    def test_folder_whitelist(self, path, expected):
        config = FilterConfig(whitelist_folders=["projects"])
        assert should_index_file(path, "md", config) is expected

    def test_folder_whitelist_with_root_entry(self):
        # a root-level file has the empty string as parent folder
        config = FilterConfig(whitelist_folders=[""])
        assert should_index_file("root.md", "md", config)

    def test_from_helper_config(self, helper_config, clean_env):
        clean_env.setenv("INDEX_WHITELIST_FOLDERS", "[notes, journal]")
        clean_env.setenv("INDEX_BLACKLIST_FILES", "[*.tmp.md]")
        config = FilterConfig.from_helper_config(helper_config)
        assert config.whitelist_folders == ["notes", "journal"]
        assert config.whitelist_extensions == [".md"]
        assert config.blacklist_files == ["*.tmp.md"]
