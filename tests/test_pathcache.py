"""
Tests for the path cache: memoization, built-ins, timeouts, pre-warming.
"""
import os
import threading
import time

import pytest

from fzfopen import pathcache
from fzfopen.pathcache import (CommandNotFound, PathCache, ResolveError,
                               ResolveTimeout)
from tests.conftest import make_executable


@pytest.fixture
def cache():
    cache = PathCache(timeout=1.0)
    yield cache
    cache.close()


def count_searches(monkeypatch):
    calls = []
    real_search = pathcache.search_path

    def search(name):
        calls.append(name)
        return real_search(name)

    monkeypatch.setattr(pathcache, "search_path", search)
    return calls


def wait_until(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestResolve:
    def test_finds_executable_in_path(self, cache, bin_dir):
        expected = make_executable(bin_dir, "zathura")
        assert cache.resolve("zathura") == expected
        assert "zathura" in cache

    def test_second_lookup_is_served_from_cache(self, cache, bin_dir, monkeypatch):
        make_executable(bin_dir, "mpv")
        calls = count_searches(monkeypatch)
        first = cache.resolve("mpv")
        second = cache.resolve("mpv")
        assert first == second
        assert calls == ["mpv"]

    def test_entry_is_never_replaced(self, cache, tmp_path, bin_dir, monkeypatch):
        first = make_executable(bin_dir, "imv")
        cache.resolve("imv")
        other_dir = tmp_path / "other"
        other_dir.mkdir()
        make_executable(other_dir, "imv")
        monkeypatch.setenv("PATH", os.pathsep.join([str(other_dir), str(bin_dir)]))
        assert cache.resolve("imv") == first

    def test_builtins_resolve_to_themselves(self, cache, bin_dir, monkeypatch):
        def fail(name):
            raise AssertionError("built-ins must not be searched")

        monkeypatch.setattr(pathcache, "search_path", fail)
        for name in ("cd", "echo", "exit"):
            assert cache.resolve(name) == name

    def test_absolute_path_is_checked_for_existence(self, cache, tmp_path, monkeypatch):
        monkeypatch.setattr(pathcache, "search_path", None)
        existing = make_executable(tmp_path, "tool")
        assert cache.resolve(existing) == existing
        with pytest.raises(CommandNotFound):
            cache.resolve(str(tmp_path / "missing"))

    def test_relative_path_with_directory_is_refused(self, cache):
        with pytest.raises(CommandNotFound):
            cache.resolve("bin/tool")

    def test_empty_name(self, cache):
        with pytest.raises(CommandNotFound):
            cache.resolve("")

    def test_miss_is_not_cached(self, cache, bin_dir):
        with pytest.raises(CommandNotFound):
            cache.resolve("firefox")
        assert "firefox" not in cache
        expected = make_executable(bin_dir, "firefox")
        assert cache.resolve("firefox") == expected

    def test_slow_search_raises_timeout(self, cache, bin_dir, monkeypatch):
        release = threading.Event()

        def slow_search(name):
            release.wait(5)
            return "/opt/slow/" + name

        monkeypatch.setattr(pathcache, "search_path", slow_search)
        with pytest.raises(ResolveTimeout) as excinfo:
            cache.resolve("slowpoke", timeout=0.01)
        assert not isinstance(excinfo.value, CommandNotFound)
        assert isinstance(excinfo.value, ResolveError)
        release.set()
        # The search keeps running and its result is still remembered
        assert wait_until(lambda: "slowpoke" in cache)
        assert cache.cached("slowpoke") == "/opt/slow/slowpoke"

    def test_get_path_returns_none_on_failure(self, cache, bin_dir):
        assert cache.get_path("missing-command") is None


class TestPrewarm:
    def test_populates_cache(self, cache, bin_dir):
        fzf = make_executable(bin_dir, "fzf")
        nvim = make_executable(bin_dir, "nvim")
        cache.prewarm(["fzf", "nvim", "not-installed"])
        assert cache.wait_prewarm(timeout=2)
        assert cache.cached("fzf") == fzf
        assert cache.cached("nvim") == nvim
        assert cache.cached("not-installed") is None
        assert len(cache) == 2

    def test_runs_only_once(self, cache, bin_dir, monkeypatch):
        make_executable(bin_dir, "fzf")
        calls = count_searches(monkeypatch)
        first = cache.prewarm(["fzf"])
        second = cache.prewarm(["fzf", "file"])
        assert first == second
        cache.wait_prewarm(timeout=2)
        assert calls == ["fzf"]

    def test_failures_are_silent(self, cache, bin_dir, monkeypatch):
        def broken(name):
            raise OSError("boom")

        monkeypatch.setattr(pathcache, "search_path", broken)
        cache.prewarm(["fzf"])
        assert cache.wait_prewarm(timeout=2)
        assert "fzf" not in cache

    def test_wait_without_prewarm(self, cache):
        assert cache.wait_prewarm(timeout=0)


class TestLowLevel:
    def test_path_dirs_skip_missing_directories(self, tmp_path, monkeypatch):
        existing = tmp_path / "a"
        existing.mkdir()
        monkeypatch.setenv("PATH", os.pathsep.join([str(tmp_path / "missing"), str(existing)]))
        assert pathcache.get_path_dirs() == [str(existing)]

    def test_empty_path(self, monkeypatch):
        monkeypatch.setenv("PATH", "")
        assert pathcache.get_path_dirs() == []
        assert pathcache.search_path("sh") is None

    def test_empty_or_plain_files_are_not_executable(self, tmp_path):
        empty = tmp_path / "empty"
        empty.write_text("")
        empty.chmod(0o755)
        plain = tmp_path / "plain"
        plain.write_text("data")
        assert not pathcache.is_executable_file(str(empty))
        assert not pathcache.is_executable_file(str(plain))
        assert pathcache.is_executable_file(make_executable(tmp_path, "run"))
