"""Test configuration and fixtures"""

import subprocess

import pytest

from spicetify_setup.core.config_store import DELTA_KEYS, SpicetifyConfigStore
from spicetify_setup.core.invoker import BYPASS_ADMIN_FLAG, QUIET_FLAG, SpicetifyInvoker
from spicetify_setup.core.paths import SpicetifyPaths
from spicetify_setup.core.session import Session


class FakeSpicetify:
    """Stands in for `subprocess.run` and behaves like a small Spicetify CLI.

    Config values are kept in `config`; list keys honour the append and
    `value-` removal conventions. Other commands return the exit code and
    output scripted in `returncodes` / `outputs`, keyed by command name
    ("backup", "apply", "path all", ...). "config get" fails reads and
    "config <key>" fails writes to that key. With `equals_form` set, reads
    print `key = value` lines instead of bare values.
    """

    def __init__(self, config=None):
        self.config = dict(config or {})
        self.returncodes = {}
        self.outputs = {}
        self.calls = []
        self.equals_form = False

    def __call__(self, command, **kwargs):
        self.calls.append(list(command))
        args = [a for a in command[1:] if a not in (BYPASS_ADMIN_FLAG, QUIET_FLAG)]
        returncode, output = self._handle(args)
        return subprocess.CompletedProcess(command, returncode, stdout=output)

    def _handle(self, args):
        if args and args[0] == "config":
            return self._config(args[1:])
        name = " ".join(args[:2]) if args and args[0] == "path" else (args[0] if args else "")
        return self.returncodes.get(name, 0), self.outputs.get(name, "")

    def _config(self, args):
        if not args:
            separator = " = " if self.equals_form else " "
            return 0, "\n".join(f"{k}{separator}{v}" for k, v in self.config.items())
        key = args[0]
        if len(args) == 1:
            if self.returncodes.get("config get", 0) != 0:
                return self.returncodes["config get"], "error Could not read config"
            value = self.config.get(key, "")
            return 0, f"{key} = {value}\n" if self.equals_form else f"{value}\n"
        if self.returncodes.get(f"config {key}", 0) != 0:
            return self.returncodes[f"config {key}"], "error Could not write config"

        value = args[1]
        if key in DELTA_KEYS:
            tokens = [t for t in self.config.get(key, "").split("|") if t]
            if value.endswith("-"):
                tokens = [t for t in tokens if t != value[:-1]]
            else:
                tokens.append(value)
            self.config[key] = "|".join(tokens)
        else:
            self.config[key] = value
        return 0, f"success Config changed: {key}"

    @property
    def commands(self):
        """Calls without the executable and the fixed flags."""
        return [[a for a in call[1:] if a not in (BYPASS_ADMIN_FLAG, QUIET_FLAG)] for call in self.calls]

    @property
    def writes(self):
        """All `config <key> <value>` calls as (key, value) pairs."""
        return [(c[1], c[2]) for c in self.commands if len(c) == 3 and c[0] == "config"]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the per-user config at a temp dir and hide real tokens"""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("SPICETIFY_SETUP_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("GH_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return config_dir


@pytest.fixture
def fake_spicetify():
    return FakeSpicetify()


@pytest.fixture
def invoker(fake_spicetify):
    return SpicetifyInvoker(executable="spicetify", runner=fake_spicetify)


@pytest.fixture
def store(invoker):
    return SpicetifyConfigStore(invoker)


@pytest.fixture
def userdata_dir(tmp_path, fake_spicetify):
    """A Spicetify userdata dir reported by `spicetify path userdata`"""
    path = tmp_path / "userdata"
    path.mkdir()
    fake_spicetify.outputs["path userdata"] = f"{path}\n"
    return path


@pytest.fixture
def paths(invoker, userdata_dir):
    return SpicetifyPaths(invoker)


@pytest.fixture
def session():
    return Session()
