"""
Shared test fixtures.
"""
import stat

import pytest

from fzfopen import logger, settings


@pytest.fixture(autouse=True)
def restore_config():
    """Keep the module-level configuration and logger untouched by tests."""
    saved = dict(settings.config)
    yield
    settings.config.clear()
    settings.config.update(saved)
    logger.disable()


@pytest.fixture
def bin_dir(tmp_path, monkeypatch):
    """Return a directory which is the only entry of PATH."""
    path = tmp_path / "bin"
    path.mkdir()
    monkeypatch.setenv("PATH", str(path))
    return path


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    """Return an isolated XDG config directory."""
    path = tmp_path / "config"
    path.mkdir()
    monkeypatch.setattr(settings, "xdg_config_home", str(path))
    return path


def make_executable(directory, name, script="#!/bin/sh\nexit 0\n"):
    """Write an executable shell script called `name` into `directory`."""
    path = directory / name
    path.write_text(script)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)
