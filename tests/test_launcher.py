"""
Tests for starting applications and the open fallback chain.
"""
import subprocess
import time
from unittest.mock import patch

import pytest

from fzfopen.dispatch import IMAGE_VIEWER, PDF_VIEWER, TEXT_EDITOR
from fzfopen.launcher import (LaunchError, choose_app, launch, open_file,
                              open_with_starter, parse_commandline)
from fzfopen.pathcache import PathCache
from tests.conftest import make_executable

APPS = {
    PDF_VIEWER: "zathura --fork",
    IMAGE_VIEWER: "imv",
    TEXT_EDITOR: "alacritty -e nvim",
}


class FakeResolver(object):
    def __init__(self, mimetype=""):
        self.mimetype = mimetype
        self.queried = []

    def get_mimetype(self, path):
        self.queried.append(path)
        return self.mimetype


@pytest.fixture
def cache():
    cache = PathCache(timeout=1.0)
    yield cache
    cache.close()


def test_parse_commandline(monkeypatch):
    monkeypatch.setenv("HOME", "/home/tester")
    assert parse_commandline("libreoffice --calc") == ["libreoffice", "--calc"]
    assert parse_commandline("'my viewer' ~/x") == ["my viewer", "/home/tester/x"]
    assert parse_commandline("   ") == []
    with pytest.raises(ValueError):
        parse_commandline("unbalanced 'quote")
    with pytest.raises(TypeError):
        parse_commandline(None)


def test_launch_unknown_program_fails(cache, bin_dir):
    assert launch("no-such-viewer", "/tmp/file.pdf", cache) is False


def test_launch_empty_or_invalid_command_fails(cache, bin_dir):
    assert launch("", "/tmp/file.pdf", cache) is False
    assert launch("viewer 'oops", "/tmp/file.pdf", cache) is False


def test_launch_appends_path_and_detaches(cache, bin_dir):
    program = make_executable(bin_dir, "zathura")
    with patch("fzfopen.launcher.subprocess.Popen") as popen:
        assert launch("zathura --fork", "/tmp/paper.pdf", cache) is True
    args, kwargs = popen.call_args
    assert args[0] == [program, "--fork", "/tmp/paper.pdf"]
    assert kwargs["start_new_session"] is True
    assert kwargs["stdin"] is subprocess.DEVNULL
    assert kwargs["stdout"] is subprocess.DEVNULL
    assert kwargs["stderr"] is subprocess.DEVNULL
    popen.return_value.wait.assert_not_called()


def test_launch_start_failure_is_reported_as_false(cache, bin_dir):
    make_executable(bin_dir, "imv")
    with patch("fzfopen.launcher.subprocess.Popen", side_effect=OSError("nope")):
        assert launch("imv", "/tmp/photo.png", cache) is False


def test_launch_really_starts_a_process(cache, bin_dir, tmp_path):
    marker = tmp_path / "marker"
    make_executable(bin_dir, "touch-it", '#!/bin/sh\necho opened > "$1"\n')
    assert launch("touch-it", str(marker), cache) is True
    deadline = time.time() + 5
    while not marker.exists() and time.time() < deadline:
        time.sleep(0.02)
    assert marker.exists()


def test_choose_app_skips_mime_lookup_for_known_extension():
    resolver = FakeResolver("image/png")
    assert choose_app("/tmp/notes.txt", resolver) == TEXT_EDITOR
    assert choose_app("/tmp/paper.pdf", resolver) == PDF_VIEWER
    assert resolver.queried == []


def test_choose_app_uses_mime_for_files_without_extension():
    assert choose_app("/tmp/README", FakeResolver("text/plain")) == TEXT_EDITOR
    assert choose_app("/tmp/picture", FakeResolver("image/png")) == IMAGE_VIEWER
    assert choose_app("/tmp/blob", FakeResolver("application/octet-stream")) is None


def test_open_file_uses_selected_application(cache, bin_dir):
    make_executable(bin_dir, "zathura")
    with patch("fzfopen.launcher.subprocess.Popen") as popen:
        assert open_file("/tmp/paper.pdf", cache, FakeResolver(), APPS) == PDF_VIEWER
    assert popen.call_count == 1


def test_open_file_falls_back_to_starter_without_match(cache, bin_dir):
    starter = make_executable(bin_dir, "xdg-open")
    resolver = FakeResolver("application/octet-stream")
    with patch("fzfopen.launcher.subprocess.Popen") as popen:
        assert open_file("/tmp/blob.bin", cache, resolver, APPS, starter="xdg-open") is None
    assert popen.call_args[0][0] == [starter, "/tmp/blob.bin"]


def test_open_file_falls_back_to_starter_when_app_is_missing(cache, bin_dir):
    starter = make_executable(bin_dir, "xdg-open")
    with patch("fzfopen.launcher.subprocess.Popen") as popen:
        assert open_file("/tmp/photo.png", cache, FakeResolver(), APPS, starter="xdg-open") is None
    assert popen.call_args[0][0] == [starter, "/tmp/photo.png"]


def test_open_file_raises_when_starter_fails_too(cache, bin_dir):
    with pytest.raises(LaunchError):
        open_file("/tmp/photo.png", cache, FakeResolver(), APPS, starter="xdg-open")


def test_open_with_starter_uses_configured_starter(cache, bin_dir, monkeypatch):
    from fzfopen import settings

    opener = make_executable(bin_dir, "my-open")
    monkeypatch.setitem(settings.config, "starter", "my-open --new-window")
    with patch("fzfopen.launcher.subprocess.Popen") as popen:
        assert open_with_starter("/tmp/x", cache) is True
    assert popen.call_args[0][0] == [opener, "--new-window", "/tmp/x"]
