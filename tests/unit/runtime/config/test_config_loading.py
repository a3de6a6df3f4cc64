"""Tests for templated YAML loading and environment overrides."""

from pathlib import Path

import pytest

from src.bookshelf.runtime.config.config_data import ConfigData
from src.bookshelf.runtime.config.config_template import (
    load_templated_yaml,
    substitute_env_vars,
)
from src.bookshelf.runtime.context import load_config

REPO_CONFIG = Path(__file__).parents[4] / "config.yaml"

DB_VARIABLES = [
    "BOOKSHELF_ENVIRONMENT",
    "BOOKSHELF_LOG_LEVEL",
    "BOOKSHELF_DB_USER",
    "BOOKSHELF_DB_PASSWORD",
    "BOOKSHELF_DB_PASSWORD_FILE",
    "BOOKSHELF_DB_HOST",
    "BOOKSHELF_DB_PORT",
    "BOOKSHELF_DB_SOCKET",
    "BOOKSHELF_LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in DB_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSubstituteEnvVars:
    """Test ${...} placeholder substitution."""

    def test_default_value(self, clean_env):
        assert substitute_env_vars("host: ${BOOKSHELF_DB_HOST:-localhost}") == "host: localhost"

    def test_value_from_environment(self, clean_env):
        clean_env.setenv("BOOKSHELF_DB_HOST", "db.internal")

        assert substitute_env_vars("host: ${BOOKSHELF_DB_HOST:-localhost}") == "host: db.internal"

    def test_required_variable_missing(self, clean_env):
        with pytest.raises(ValueError, match="BOOKSHELF_DB_HOST not set"):
            substitute_env_vars("host: ${BOOKSHELF_DB_HOST}")

    def test_required_variable_with_message(self, clean_env):
        with pytest.raises(ValueError, match="database host is required"):
            substitute_env_vars("host: ${BOOKSHELF_DB_HOST:?database host is required}")

    def test_text_without_placeholders(self):
        assert substitute_env_vars("name: library") == "name: library"

    def test_comment_lines_are_not_expanded(self, clean_env):
        text = "# set ${BOOKSHELF_DB_HOST} or ${VAR:?needed}\nhost: ${BOOKSHELF_DB_HOST:-localhost}\n"

        assert substitute_env_vars(text) == (
            "# set ${BOOKSHELF_DB_HOST} or ${VAR:?needed}\nhost: localhost\n"
        )

    def test_indented_comment_is_not_expanded(self, clean_env):
        text = "database:\n    # ${UNSET_VAR}\n    name: library\n"

        assert substitute_env_vars(text) == text

    def test_trailing_comment_is_not_expanded(self, clean_env):
        text = "host: ${BOOKSHELF_DB_HOST:-localhost}  # or ${BOOKSHELF_DB_SOCKET}\n"

        assert substitute_env_vars(text) == "host: localhost  # or ${BOOKSHELF_DB_SOCKET}\n"

    def test_hash_inside_default_is_kept(self, clean_env):
        assert substitute_env_vars("title: ${BOOKSHELF_DB_HOST:-a #1}") == "title: a #1"

    def test_hash_without_whitespace_is_not_a_comment(self, clean_env):
        text = "url: http://example.com/#${BOOKSHELF_DB_HOST:-top}"

        assert substitute_env_vars(text) == "url: http://example.com/#top"


class TestLoadTemplatedYaml:
    """Test loading config files into ConfigData."""

    def test_repository_config(self, clean_env):
        """The shipped config.yaml loads with defaults and no secrets."""
        config = load_templated_yaml(REPO_CONFIG)

        assert config.database.driver == "mysql+pymysql"
        assert config.database.name == "library"
        assert config.database.username == "root"
        assert config.database.password is None
        assert config.database.unix_socket is None
        assert config.database.port == 3306
        assert config.logging.file is None

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("BOOKSHELF_DB_HOST", "db.internal")
        clean_env.setenv("BOOKSHELF_DB_PORT", "3307")
        clean_env.setenv("BOOKSHELF_DB_PASSWORD", "s3cret")

        config = load_templated_yaml(REPO_CONFIG)

        assert config.database.host == "db.internal"
        assert config.database.port == 3307
        assert config.database.resolved_password == "s3cret"

    def test_missing_sections_use_defaults(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("config:\n  database:\n    name: shelf\n")

        config = load_templated_yaml(config_file)

        assert config.database.name == "shelf"
        assert config.database.host == "127.0.0.1"
        assert config.logging.level == "INFO"

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        with pytest.raises(ValueError, match="Failed to parse YAML"):
            load_templated_yaml(config_file)

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("config: [unclosed\n")

        with pytest.raises(ValueError, match="Error parsing YAML"):
            load_templated_yaml(config_file)

    def test_invalid_values(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("config:\n  database:\n    port: not-a-port\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_templated_yaml(config_file)

    def test_placeholder_in_comment_loads(self, clean_env, tmp_path):
        """Documenting a placeholder in a comment does not require the variable."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "# Values use ${VAR}, ${VAR:-default} or ${VAR:?message}\n"
            "config:\n"
            "  database:\n"
            "    host: ${BOOKSHELF_DB_HOST:-db.local}  # ${ALSO_UNSET}\n"
        )

        config = load_templated_yaml(config_file)

        assert config.database.host == "db.local"

    def test_top_level_must_be_mapping(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- one\n- two\n")

        with pytest.raises(ValueError, match="expected a mapping"):
            load_templated_yaml(config_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_templated_yaml(tmp_path / "nope.yaml")


class TestLoadConfig:
    """Test resolution of the active configuration."""

    def test_missing_file_gives_defaults(self, clean_env, tmp_path):
        config = load_config(tmp_path / "nope.yaml")

        assert config == ConfigData()

    def test_log_level_from_environment(self, clean_env, tmp_path):
        clean_env.setenv("BOOKSHELF_LOG_LEVEL", "DEBUG")

        config = load_config(tmp_path / "nope.yaml")

        assert config.logging.level == "DEBUG"

    def test_environment_from_environment(self, clean_env, tmp_path):
        clean_env.setenv("BOOKSHELF_ENVIRONMENT", "production")

        config = load_config(tmp_path / "nope.yaml")

        assert config.app.environment == "production"

    def test_config_file_setting(self, clean_env, tmp_path):
        """BOOKSHELF_CONFIG_FILE selects the file when no path is given."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("config:\n  database:\n    name: custom\n")
        clean_env.setenv("BOOKSHELF_CONFIG_FILE", str(config_file))

        assert load_config().database.name == "custom"
