"""Tests for the one-shot command line"""

import pytest
from typer.testing import CliRunner

from spicetify_setup.cli import app
from spicetify_setup.core.config_store import CUSTOM_APPS_KEY, EXTENSIONS_KEY, LAUNCH_FLAGS_KEY
from spicetify_setup.core.invoker import SpicetifyInvoker


runner = CliRunner()


@pytest.fixture(autouse=True)
def use_fake_spicetify(monkeypatch, invoker, userdata_dir):
    monkeypatch.setattr("spicetify_setup.cli.SpicetifyInvoker", lambda: invoker)


class TestListCommands:
    """config extension / config app"""

    def test_add_extension(self, fake_spicetify):
        result = runner.invoke(app, ["config", "extension", "add", "fullAppDisplay.js"])
        assert result.exit_code == 0, result.output
        assert fake_spicetify.writes == [(EXTENSIONS_KEY, "fullAppDisplay.js")]

    def test_add_present_extension_does_not_write(self, fake_spicetify):
        fake_spicetify.config[EXTENSIONS_KEY] = "fullAppDisplay.js"
        result = runner.invoke(app, ["config", "extension", "add", "fullAppDisplay.js"])
        assert result.exit_code == 0
        assert "already" in result.output
        assert fake_spicetify.writes == []

    def test_remove_custom_app(self, fake_spicetify):
        fake_spicetify.config[CUSTOM_APPS_KEY] = "marketplace|lyrics-plus"
        result = runner.invoke(app, ["config", "app", "remove", "marketplace"])
        assert result.exit_code == 0
        assert fake_spicetify.writes == [(CUSTOM_APPS_KEY, "marketplace-")]

    def test_clear_extensions(self, fake_spicetify):
        fake_spicetify.config[EXTENSIONS_KEY] = "a.js|b.js"
        result = runner.invoke(app, ["config", "extension", "clear", "--yes"])
        assert result.exit_code == 0
        assert fake_spicetify.writes == [(EXTENSIONS_KEY, "a.js-"), (EXTENSIONS_KEY, "b.js-")]

    def test_rejected_write_exits_nonzero(self, fake_spicetify):
        fake_spicetify.returncodes[f"config {EXTENSIONS_KEY}"] = 1
        result = runner.invoke(app, ["config", "extension", "add", "a.js"])
        assert result.exit_code == 1

    def test_list_extensions(self, fake_spicetify):
        fake_spicetify.config[EXTENSIONS_KEY] = "a.js|b.js"
        result = runner.invoke(app, ["config", "extension", "list"])
        assert result.exit_code == 0
        assert "a.js" in result.output
        assert "b.js" in result.output


class TestSettingCommands:
    """Launch flags, boolean flags and theme"""

    def test_add_launch_flag(self, fake_spicetify):
        fake_spicetify.config[LAUNCH_FLAGS_KEY] = "--minimized"
        result = runner.invoke(app, ["config", "launch-flag", "add", "--", "--maximized"])
        assert result.exit_code == 0, result.output
        assert fake_spicetify.writes == [(LAUNCH_FLAGS_KEY, "--minimized|--maximized")]

    def test_flag_on(self, fake_spicetify):
        result = runner.invoke(app, ["config", "flag", "inject_css", "on"])
        assert result.exit_code == 0
        assert fake_spicetify.writes == [("inject_css", "1")]

    def test_unknown_flag(self, fake_spicetify):
        result = runner.invoke(app, ["config", "flag", "make_it_pretty", "on"])
        assert result.exit_code == 1
        assert fake_spicetify.calls == []

    def test_theme_with_scheme(self, fake_spicetify):
        result = runner.invoke(app, ["config", "theme", "Sleek", "--scheme", "Nord"])
        assert result.exit_code == 0
        assert fake_spicetify.writes == [("current_theme", "Sleek"), ("color_scheme", "Nord")]


class TestApplyCommands:
    """apply / backup / restore"""

    def test_apply(self, fake_spicetify):
        result = runner.invoke(app, ["apply"])
        assert result.exit_code == 0, result.output
        names = [c[0] for c in fake_spicetify.commands if c[0] in ("backup", "apply", "restart")]
        assert names == ["backup", "apply", "restart"]

    def test_apply_failure(self, fake_spicetify):
        fake_spicetify.returncodes["apply"] = 1
        fake_spicetify.outputs["apply"] = "error Cannot patch Spotify"
        result = runner.invoke(app, ["apply"])
        assert result.exit_code == 1
        assert "Cannot patch Spotify" in result.output

    def test_backup_failure_still_succeeds(self, fake_spicetify):
        fake_spicetify.returncodes["backup"] = 1
        fake_spicetify.outputs["path all"] = "/home/u/.spicetify\n"
        result = runner.invoke(app, ["backup"])
        assert result.exit_code == 0, result.output
        assert "apply" in result.output
        assert "Backup ready" not in result.output

    def test_restore(self, fake_spicetify):
        result = runner.invoke(app, ["restore", "--yes"])
        assert result.exit_code == 0
        assert ["restore"] in fake_spicetify.commands


class TestMisc:
    """Version, help, token and the missing-Spicetify path"""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "spicetify-setup" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "install" in result.output
        assert "config" in result.output

    def test_token_show_is_masked(self, monkeypatch):
        monkeypatch.setenv("GH_TOKEN", "ghp_1234567890abcd")
        result = runner.invoke(app, ["token", "show"])
        assert result.exit_code == 0
        assert "ghp_1234567890abcd" not in result.output
        assert "GH_TOKEN" in result.output

    def test_missing_spicetify(self, monkeypatch):
        monkeypatch.setattr("spicetify_setup.core.invoker.find_spicetify", lambda: None)
        monkeypatch.setattr("spicetify_setup.cli.SpicetifyInvoker", lambda: SpicetifyInvoker())
        result = runner.invoke(app, ["config", "extension", "list"])
        assert result.exit_code == 1
        assert "not installed" in result.output
