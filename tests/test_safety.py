"""Tests for the git work tree guard and data dir resolution."""

from __future__ import annotations

import pytest

from moodjournal.paths import ENV_VAR, default_data_dir, media_dir, resolve_data_dir
from moodjournal.safety import _find_git_root, assert_safe_data_dir


def test_find_git_root(tmp_path):
    (tmp_path / ".git").mkdir()
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert _find_git_root(nested) == tmp_path


def test_refuses_data_dir_inside_repo(tmp_path, capsys):
    (tmp_path / ".git").mkdir()
    with pytest.raises(SystemExit) as exc:
        assert_safe_data_dir(tmp_path / "journal", allow_repo_data_path=False)
    assert exc.value.code == 2
    assert "Refusing" in capsys.readouterr().err


def test_override_allows_repo_path(tmp_path):
    (tmp_path / ".git").mkdir()
    assert_safe_data_dir(tmp_path / "journal", allow_repo_data_path=True)


def test_resolve_prefers_flag_then_env(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_VAR, str(tmp_path / "env"))
    assert resolve_data_dir(str(tmp_path / "flag"), None) == (tmp_path / "flag").resolve()
    assert resolve_data_dir(None, "dev") == (tmp_path / "env").resolve()


def test_resolve_profile_default(monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    assert resolve_data_dir(None, "dev") == default_data_dir("dev").resolve()
    assert default_data_dir("dev").name == "dev"


def test_media_dir(tmp_path):
    assert media_dir(tmp_path) == tmp_path / "media"
