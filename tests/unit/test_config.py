"""Tests for server configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from vibetree.core.config import ServerConfig, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the host environment and any .env file out of these tests."""
    for var in ("PORT", "PROJECT_PATH", "VIBETREE_GIT_TIMEOUT", "VIBETREE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


class TestServerConfig:

    def test_defaults(self, tmp_path):
        config = ServerConfig()
        assert config.port == 3001
        assert config.host == "0.0.0.0"
        assert config.git_timeout == 30.0
        assert config.project_path == Path.cwd()

    def test_port_and_project_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PORT", "4000")
        monkeypatch.setenv("PROJECT_PATH", str(tmp_path))

        config = ServerConfig()

        assert config.port == 4000
        assert config.project_path == tmp_path.resolve()

    def test_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("VIBETREE_GIT_TIMEOUT", "5")
        assert ServerConfig().git_timeout == 5.0

    def test_invalid_port(self):
        with pytest.raises(ValidationError):
            ServerConfig(port=70000)

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ServerConfig(git_timeout=0)

    def test_project_path_expanded(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert ServerConfig(project_path="~").project_path == tmp_path.resolve()


class TestLoadConfig:

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")
        assert config.port == 3001

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "vibetree.yaml"
        path.write_text(
            f"project_path: {tmp_path}\n"
            "port: 8123\n"
            "git_timeout: 12.5\n"
            "log_level: DEBUG\n"
        )

        config = load_config(path)

        assert config.project_path == tmp_path.resolve()
        assert config.port == 8123
        assert config.git_timeout == 12.5
        assert config.log_level == "DEBUG"

    def test_env_var_expansion(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MY_SHELL", "/bin/zsh")
        path = tmp_path / "vibetree.yaml"
        path.write_text("shell: ${MY_SHELL}\n")

        assert load_config(path).shell == "/bin/zsh"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "vibetree.yaml"
        path.write_text("")
        assert load_config(path).port == 3001

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "vibetree.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config(path)

    def test_embedded_env_var_expansion(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_ROOT", str(tmp_path))
        path = tmp_path / "vibetree.yaml"
        path.write_text("log_file: ${LOG_ROOT}/logs/vibetree.log\n")

        assert load_config(path).log_file == tmp_path / "logs" / "vibetree.log"

    def test_unset_env_var_left_in_place(self, monkeypatch, tmp_path):
        monkeypatch.delenv("VIBETREE_UNSET_SHELL", raising=False)
        path = tmp_path / "vibetree.yaml"
        path.write_text("shell: ${VIBETREE_UNSET_SHELL}\n")

        assert load_config(path).shell == "${VIBETREE_UNSET_SHELL}"
