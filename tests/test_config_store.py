"""Tests for reading and writing Spicetify config"""

import pytest

from spicetify_setup.core.config_store import (
    CUSTOM_APPS_KEY,
    EXTENSIONS_KEY,
    join_config_list,
    parse_config_value,
    split_config_list,
)


class TestParsing:
    """Parsing `spicetify config` output"""

    def test_split_list(self):
        assert split_config_list("a|b|c", "extensions") == ["a", "b", "c"]

    @pytest.mark.parametrize("value", ["", "   ", "extensions"])
    def test_split_empty_values(self, value):
        assert split_config_list(value, "extensions") == []

    def test_split_drops_empty_tokens(self):
        assert split_config_list("|a||b |", "extensions") == ["a", "b"]

    def test_join(self):
        assert join_config_list(["--minimized", "--maximized"]) == "--minimized|--maximized"

    def test_parse_key_value_line(self):
        assert parse_config_value("current_theme   Dribbblish\n", "current_theme") == "Dribbblish"

    def test_parse_equals_line(self):
        assert parse_config_value("inject_css = 1", "inject_css") == "1"

    def test_parse_bare_value(self):
        assert parse_config_value("fullAppDisplay.js|shuffle+.js\n", "extensions") == "fullAppDisplay.js|shuffle+.js"

    def test_parse_ignores_log_lines(self):
        output = "warning Something odd\nnew-releases|lyrics-plus\n"
        assert parse_config_value(output, "custom_apps") == "new-releases|lyrics-plus"

    def test_parse_keeps_values_that_start_with_log_words(self):
        assert parse_config_value("infoPanel.js|b.js\n", "extensions") == "infoPanel.js|b.js"

    def test_parse_equals_line_with_list(self):
        assert parse_config_value("extensions = a.js|b.js", "extensions") == "a.js|b.js"

    def test_parse_ambiguous_output_is_empty(self):
        assert parse_config_value("one\ntwo\n", "extensions") == ""


class TestSpicetifyConfigStore:
    """Every operation is one Spicetify call"""

    def test_get_list(self, store, fake_spicetify):
        fake_spicetify.config[EXTENSIONS_KEY] = "a|b|c"
        assert store.get_list(EXTENSIONS_KEY) == ["a", "b", "c"]

    def test_get_list_of_unset_key(self, store, fake_spicetify):
        fake_spicetify.config[CUSTOM_APPS_KEY] = CUSTOM_APPS_KEY
        assert store.get_list(CUSTOM_APPS_KEY) == []

    def test_get_list_on_failure_is_empty(self, store, fake_spicetify):
        fake_spicetify.config[EXTENSIONS_KEY] = "a|b"
        fake_spicetify.returncodes["config get"] = 1
        assert store.get_list(EXTENSIONS_KEY) == []

    def test_add_token_is_one_write(self, store, fake_spicetify):
        assert store.add_token(EXTENSIONS_KEY, "fullAppDisplay.js")
        assert fake_spicetify.commands == [["config", EXTENSIONS_KEY, "fullAppDisplay.js"]]

    def test_remove_uses_suffix_without_reading(self, store, fake_spicetify):
        fake_spicetify.config[EXTENSIONS_KEY] = "x|y"
        assert store.remove_token(EXTENSIONS_KEY, "x")
        assert fake_spicetify.commands == [["config", EXTENSIONS_KEY, "x-"]]

    def test_remove_then_read(self, store, fake_spicetify):
        fake_spicetify.config[EXTENSIONS_KEY] = "ext1.js|ext2.js"
        store.remove_token(EXTENSIONS_KEY, "ext1.js")
        assert fake_spicetify.writes == [(EXTENSIONS_KEY, "ext1.js-")]
        assert store.get_list(EXTENSIONS_KEY) == ["ext2.js"]

    def test_clear_all_uses_snapshot(self, store, fake_spicetify):
        fake_spicetify.config[EXTENSIONS_KEY] = "a|b|c"
        snapshot = store.get_list(EXTENSIONS_KEY)
        # Another writer changes the list after the snapshot was taken
        fake_spicetify.config[EXTENSIONS_KEY] = "a|d"
        fake_spicetify.calls.clear()

        removed = store.clear_all(EXTENSIONS_KEY, snapshot)

        assert removed == 3
        assert fake_spicetify.writes == [(EXTENSIONS_KEY, "a-"), (EXTENSIONS_KEY, "b-"), (EXTENSIONS_KEY, "c-")]
        assert all(len(c) == 3 for c in fake_spicetify.commands)
        assert store.get_list(EXTENSIONS_KEY) == ["d"]

    def test_clear_all_counts_rejected_removals(self, store, fake_spicetify):
        fake_spicetify.returncodes[f"config {EXTENSIONS_KEY}"] = 1
        assert store.clear_all(EXTENSIONS_KEY, ["a", "b"]) == 0
        assert len(fake_spicetify.writes) == 2

    def test_set_raw_is_single_write(self, store, fake_spicetify):
        assert store.set_raw("spotify_launch_flags", "--minimized|--maximized")
        assert fake_spicetify.writes == [("spotify_launch_flags", "--minimized|--maximized")]

    def test_flags(self, store, fake_spicetify):
        store.set_flag("inject_css", True)
        store.set_flag("replace_colors", False)
        assert fake_spicetify.writes == [("inject_css", "1"), ("replace_colors", "0")]
        assert store.get_flag("inject_css")
        assert not store.get_flag("replace_colors")

    def test_read_all(self, store, fake_spicetify):
        fake_spicetify.config.update({"current_theme": "Sleek", "inject_css": "1", "extensions": ""})
        settings = store.read_all()
        assert settings["current_theme"] == "Sleek"
        assert settings["inject_css"] == "1"

    def test_value_starting_with_log_word(self, store, fake_spicetify):
        fake_spicetify.config[EXTENSIONS_KEY] = "infoPanel.js|b.js"
        assert store.get_list(EXTENSIONS_KEY) == ["infoPanel.js", "b.js"]

    def test_raw_key_has_no_token_writes(self, store):
        with pytest.raises(ValueError):
            store.add_token("spotify_launch_flags", "--minimized")


class TestEqualsOutput:
    """Spicetify builds that print `key = value`"""

    def test_get_list(self, store, fake_spicetify):
        fake_spicetify.equals_form = True
        fake_spicetify.config[EXTENSIONS_KEY] = "a.js|b.js"
        assert store.get_list(EXTENSIONS_KEY) == ["a.js", "b.js"]

    def test_get_flag(self, store, fake_spicetify):
        fake_spicetify.equals_form = True
        fake_spicetify.config["inject_css"] = "1"
        assert store.get_flag("inject_css")

    def test_empty_list(self, store, fake_spicetify):
        fake_spicetify.equals_form = True
        fake_spicetify.config[CUSTOM_APPS_KEY] = ""
        assert store.get_list(CUSTOM_APPS_KEY) == []

    def test_read_all(self, store, fake_spicetify):
        fake_spicetify.equals_form = True
        fake_spicetify.config.update({"current_theme": "Sleek", "replace_colors": "1"})
        assert store.read_all() == {"current_theme": "Sleek", "replace_colors": "1"}
