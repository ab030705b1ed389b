#!/usr/bin/env python3
"""
VBOXTREE CONFIG SUITE
---------------------
Defaults, vboxtree.toml discovery and environment overrides.
"""

import pytest

from vboxtree.core.config import VBoxTreeConfig, load_config
from vboxtree.core.errors import ConfigError


def test_defaults(isolated_env):
    config = load_config()
    assert config == VBoxTreeConfig()
    assert config.vboxmanage is None
    assert config.timeout == 60
    assert config.log_level == "WARNING"
    assert config.indent == 2


def test_toml_in_working_directory(isolated_env):
    (isolated_env / "vboxtree.toml").write_text(
        '[vboxtree]\nvboxmanage = "/usr/local/bin/VBoxManage"\ntimeout = 15\nindent = 4\n'
    )
    config = load_config()
    assert config.vboxmanage == "/usr/local/bin/VBoxManage"
    assert config.timeout == 15
    assert config.indent == 4


def test_toml_in_home_directory(isolated_env):
    home_dir = isolated_env / ".vboxtree"
    home_dir.mkdir()
    (home_dir / "vboxtree.toml").write_text('log_level = "DEBUG"\n')

    assert load_config().log_level == "DEBUG"


def test_working_directory_shadows_home(isolated_env):
    home_dir = isolated_env / ".vboxtree"
    home_dir.mkdir()
    (home_dir / "vboxtree.toml").write_text('timeout = 1\n')
    (isolated_env / "vboxtree.toml").write_text('timeout = 2\n')

    assert load_config().timeout == 2


def test_explicit_path(isolated_env, tmp_path):
    path = tmp_path / "custom.toml"
    path.write_text('[vboxtree]\ntimeout = 7\n')
    assert load_config(path).timeout == 7


def test_explicit_path_must_exist(isolated_env, tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.toml")


def test_env_overrides_file(isolated_env, monkeypatch):
    (isolated_env / "vboxtree.toml").write_text('timeout = 15\nlog_level = "INFO"\n')
    monkeypatch.setenv("VBOXTREE_TIMEOUT", "90")
    monkeypatch.setenv("VBOXTREE_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("VBOXTREE_VBOXMANAGE", "/env/VBoxManage")

    config = load_config()
    assert config.timeout == 90
    assert config.log_level == "ERROR"
    assert config.vboxmanage == "/env/VBoxManage"


def test_invalid_toml(isolated_env):
    (isolated_env / "vboxtree.toml").write_text('timeout = = 3\n')
    with pytest.raises(ConfigError, match="Unable to read config"):
        load_config()


def test_invalid_number(isolated_env, monkeypatch):
    monkeypatch.setenv("VBOXTREE_TIMEOUT", "soon")
    with pytest.raises(ConfigError, match="Invalid numeric setting"):
        load_config()
