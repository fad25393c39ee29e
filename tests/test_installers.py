"""Tests for the Spotify, Spicetify and Marketplace installers"""

import io
import tarfile
import zipfile

import httpx
import pytest

from spicetify_setup.core.config_store import CUSTOM_APPS_KEY
from spicetify_setup.core.invoker import InvocationResult
from spicetify_setup.errors import InstallerError, ReleaseFetchError, UnsupportedPlatformError
from spicetify_setup.installers import spicetify as spicetify_installer
from spicetify_setup.installers import spotify as spotify_installer
from spicetify_setup.installers.spicetify import extract_archive, install_marketplace, install_spicetify
from spicetify_setup.installers.spotify import SpotifyInstall, detect_spotify, install_spotify
from spicetify_setup.ui import StepTracker


def _zip_bytes(files):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def _tar_bytes(files):
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o644
            archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def _release_client(asset_name, payload, asset_status=200):
    """GitHub serving one release with a single asset"""
    asset_url = f"https://example.test/download/{asset_name}"

    def handler(request):
        if request.url.path.endswith("/releases/latest"):
            return httpx.Response(200, json={
                "tag_name": "v1.2.3",
                "assets": [{"name": asset_name, "browser_download_url": asset_url, "size": len(payload)}],
            })
        if str(request.url) == asset_url:
            return httpx.Response(asset_status, content=payload)
        return httpx.Response(404)

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestExtractArchive:
    """zip and tar.gz extraction"""

    def test_zip(self, tmp_path):
        archive = tmp_path / "a.zip"
        archive.write_bytes(_zip_bytes({"dist/index.js": b"js"}))
        extract_archive(archive, tmp_path / "out")
        assert (tmp_path / "out" / "dist" / "index.js").read_bytes() == b"js"

    def test_tar_gz(self, tmp_path):
        archive = tmp_path / "a.tar.gz"
        archive.write_bytes(_tar_bytes({"spicetify": b"#!/bin/sh\n"}))
        extract_archive(archive, tmp_path / "out")
        assert (tmp_path / "out" / "spicetify").is_file()

    def test_unsupported_format(self, tmp_path):
        archive = tmp_path / "a.rar"
        archive.write_bytes(b"")
        with pytest.raises(InstallerError):
            extract_archive(archive, tmp_path / "out")

    def test_corrupt_zip(self, tmp_path):
        archive = tmp_path / "a.zip"
        archive.write_bytes(b"not a zip")
        with pytest.raises(InstallerError):
            extract_archive(archive, tmp_path / "out")


class TestInstallMarketplace:
    """Marketplace is unpacked into CustomApps and registered"""

    def test_installs_and_registers(self, store, paths, userdata_dir, fake_spicetify):
        payload = _zip_bytes({"marketplace-dist/index.js": b"js", "marketplace-dist/manifest.json": b"{}"})
        tracker = StepTracker("Install Marketplace")

        release = install_marketplace(store, paths, client=_release_client("marketplace.zip", payload), tracker=tracker)

        assert release.tag_name == "v1.2.3"
        target = userdata_dir / "CustomApps" / "marketplace"
        assert (target / "index.js").read_bytes() == b"js"
        assert (target / "manifest.json").is_file()
        assert fake_spicetify.writes == [
            (CUSTOM_APPS_KEY, "marketplace"),
            ("inject_css", "1"),
            ("replace_colors", "1"),
        ]
        assert tracker.status_of("register") == "done"

    def test_already_registered(self, store, paths, fake_spicetify):
        fake_spicetify.config[CUSTOM_APPS_KEY] = "marketplace"
        payload = _zip_bytes({"index.js": b"js"})

        install_marketplace(store, paths, client=_release_client("marketplace.zip", payload),
                            tracker=StepTracker("Install Marketplace"))

        assert (CUSTOM_APPS_KEY, "marketplace") not in fake_spicetify.writes

    def test_missing_asset(self, store, paths, fake_spicetify):
        with pytest.raises(ReleaseFetchError):
            install_marketplace(store, paths, client=_release_client("other.zip", b""),
                                tracker=StepTracker("Install Marketplace"))
        assert fake_spicetify.writes == []

    def test_failed_download_marks_step(self, store, paths, fake_spicetify):
        tracker = StepTracker("Install Marketplace")
        with pytest.raises(ReleaseFetchError):
            install_marketplace(store, paths, client=_release_client("marketplace.zip", b"", asset_status=502),
                                tracker=tracker)
        assert tracker.status_of("fetch") == "done"
        assert tracker.status_of("download") == "error"
        assert fake_spicetify.writes == []

    def test_corrupt_archive_marks_step(self, store, paths):
        tracker = StepTracker("Install Marketplace")
        with pytest.raises(InstallerError):
            install_marketplace(store, paths, client=_release_client("marketplace.zip", b"not a zip"),
                                tracker=tracker)
        assert tracker.status_of("extract") == "error"


class TestInstallSpicetify:
    """The CLI archive is unpacked, made executable and configured"""

    def test_install(self, tmp_path, monkeypatch):
        generated = []

        class RecordingInvoker:
            def __init__(self, executable=None):
                self.executable = executable

            def invoke(self, args):
                generated.append((self.executable, list(args)))
                return InvocationResult(tuple(args), 0)

        monkeypatch.setattr(spicetify_installer, "platform_asset_suffix", lambda: "linux-amd64.tar.gz")
        monkeypatch.setattr(spicetify_installer, "spicetify_executable_name", lambda: "spicetify")
        monkeypatch.setattr(spicetify_installer, "add_to_user_path", lambda directory: True)
        monkeypatch.setattr(spicetify_installer, "SpicetifyInvoker", RecordingInvoker)
        payload = _tar_bytes({"spicetify": b"#!/bin/sh\n", "jsHelper/spicetifyWrapper.js": b""})
        install_dir = tmp_path / "spicetify-cli"
        tracker = StepTracker("Install Spicetify CLI")

        executable = install_spicetify(client=_release_client("spicetify-1.2.3-linux-amd64.tar.gz", payload),
                                       tracker=tracker, install_dir=install_dir)

        assert executable == install_dir / "spicetify"
        assert executable.is_file()
        assert generated == [(str(executable), ["config"])]
        assert tracker.status_of("init-config") == "done"

    def test_archive_without_executable(self, tmp_path, monkeypatch):
        monkeypatch.setattr(spicetify_installer, "platform_asset_suffix", lambda: "linux-amd64.tar.gz")
        monkeypatch.setattr(spicetify_installer, "spicetify_executable_name", lambda: "spicetify")
        payload = _tar_bytes({"README.md": b"hello"})

        with pytest.raises(InstallerError):
            install_spicetify(client=_release_client("spicetify-1.2.3-linux-amd64.tar.gz", payload),
                              tracker=StepTracker("Install Spicetify CLI"), install_dir=tmp_path / "cli")

    def test_failed_download_marks_step(self, tmp_path, monkeypatch):
        monkeypatch.setattr(spicetify_installer, "platform_asset_suffix", lambda: "linux-amd64.tar.gz")
        tracker = StepTracker("Install Spicetify CLI")

        with pytest.raises(ReleaseFetchError):
            install_spicetify(client=_release_client("spicetify-1.2.3-linux-amd64.tar.gz", b"", asset_status=404),
                              tracker=tracker, install_dir=tmp_path / "cli")

        assert tracker.status_of("download") == "error"
        assert tracker.status_of("extract") is None


class TestSpotify:
    """Spotify detection and the Windows-only installer"""

    def test_detect_on_path(self, monkeypatch, tmp_path):
        monkeypatch.setattr(spotify_installer, "detect_platform", lambda: "linux")
        monkeypatch.setattr(spotify_installer.shutil, "which", lambda name: str(tmp_path / "spotify"))
        found = detect_spotify()
        assert found.found
        assert found.location == tmp_path
        assert found.source == "path"

    def test_already_installed_is_skipped(self, monkeypatch):
        monkeypatch.setattr(spotify_installer, "detect_spotify",
                            lambda runner=None: SpotifyInstall(True, None, source="path"))
        tracker = StepTracker("Install Spotify")

        result = install_spotify(tracker=tracker)

        assert result.found
        assert tracker.status_of("install") == "skipped"

    def test_not_supported_off_windows(self, monkeypatch):
        monkeypatch.setattr(spotify_installer, "detect_spotify", lambda runner=None: SpotifyInstall(False))
        monkeypatch.setattr(spotify_installer, "detect_platform", lambda: "linux")
        with pytest.raises(UnsupportedPlatformError):
            install_spotify(tracker=StepTracker("Install Spotify"))

    def test_failed_installer_download_marks_step(self, monkeypatch):
        monkeypatch.setattr(spotify_installer, "detect_spotify", lambda runner=None: SpotifyInstall(False))
        monkeypatch.setattr(spotify_installer, "detect_platform", lambda: "windows")
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        tracker = StepTracker("Install Spotify")

        with pytest.raises(ReleaseFetchError):
            install_spotify(client=client, tracker=tracker, runner=lambda *args, **kwargs: None)

        assert tracker.status_of("download") == "error"
        assert tracker.status_of("install") is None
