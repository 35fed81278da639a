"""Tests for configuration models and loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from sqlsentry.config import (
    Configuration,
    ConfigurationError,
    EngineFamily,
    load_config,
    resolve_config_path,
)
from sqlsentry.database.formatting import OutputFormat

MINIMAL = {
    "profiles": {
        "local": {"host": "localhost", "port": 3306, "user": "root", "password": 1234, "database": "shop"},
    }
}

FRONT_MATTER = """---
profiles:
  local:
    type: mysql
    host: localhost
    port: 3306
    user: root
    password: secret
    database: shop
  reports:
    type: postgresql
    host: pg.internal
    port: 5432
    user: report
    password: secret
    database: warehouse
defaultProfile: reports
defaultFormat: toon
safety:
  defaultLimit: 25
---

# Database notes

Anything below the front matter is ignored.
"""


def test_minimal_mapping_fills_defaults() -> None:
    config = Configuration.from_mapping(MINIMAL)

    assert config.default_profile == "local"
    assert config.default_format is OutputFormat.TABLE
    assert config.engine_for("local") is EngineFamily.MYSQL
    assert config.profile("local").password == "1234"
    assert config.safety.row_limit_default == 100
    assert config.safety.confirmation_keywords == ("DELETE", "UPDATE", "DROP", "TRUNCATE", "ALTER")
    assert config.safety.blacklisted_phrases == ("DROP DATABASE",)


def test_camel_case_and_snake_case_keys(config_data: dict[str, Any]) -> None:
    config_data["safety"] = {
        "default_limit": 10,
        "require_confirmation_for": ["DELETE"],
        "blacklisted_operations": ["DROP DATABASE", "TRUNCATE"],
    }
    config_data["default_profile"] = "analytics"

    config = Configuration.from_mapping(config_data)

    assert config.default_profile == "analytics"
    assert config.safety.row_limit_default == 10
    assert config.safety.confirmation_keywords == ("DELETE",)
    assert config.safety.blacklisted_phrases == ("DROP DATABASE", "TRUNCATE")


def test_schema_defaults_to_public(config: Configuration, config_data: dict[str, Any]) -> None:
    assert config.schema_for("analytics") == "sales"

    del config_data["profiles"]["analytics"]["schema"]
    assert Configuration.from_mapping(config_data).schema_for("analytics") == "public"


def test_null_safety_section_uses_defaults() -> None:
    config = Configuration.from_mapping({**MINIMAL, "safety": None})

    assert config.safety.row_limit_default == 100


def test_unknown_profile_lists_available(config: Configuration) -> None:
    with pytest.raises(ConfigurationError, match='Profile "nope" not found. Available profiles: local, analytics'):
        config.profile("nope")


@pytest.mark.parametrize("data", [{}, {"profiles": {}}, {"profiles": ["local"]}])
def test_profiles_are_required(data: dict[str, Any]) -> None:
    with pytest.raises(ConfigurationError, match='non-empty "profiles" mapping'):
        Configuration.from_mapping(data)


def test_default_profile_must_exist() -> None:
    with pytest.raises(ConfigurationError, match='Default profile "other" not found'):
        Configuration.from_mapping({**MINIMAL, "defaultProfile": "other"})


def test_invalid_profile_reports_field() -> None:
    data = {"profiles": {"local": {"host": "localhost", "port": "not-a-port", "user": "u", "password": "p", "database": "d"}}}

    with pytest.raises(ConfigurationError, match="Invalid configuration") as excinfo:
        Configuration.from_mapping(data)

    assert "profiles.local.port" in str(excinfo.value)


def test_unknown_engine_is_rejected() -> None:
    data = {"profiles": {"local": {**MINIMAL["profiles"]["local"], "type": "oracle"}}}

    with pytest.raises(ConfigurationError):
        Configuration.from_mapping(data)


def test_load_markdown_front_matter(tmp_path: Path) -> None:
    path = tmp_path / ".sqlsentry.md"
    path.write_text(FRONT_MATTER, encoding="utf-8")

    config = load_config(path)

    assert list(config.profiles) == ["local", "reports"]
    assert config.default_profile == "reports"
    assert config.default_format is OutputFormat.TOON
    assert config.engine_for("reports") is EngineFamily.POSTGRESQL
    assert config.safety.row_limit_default == 25


def test_load_plain_yaml(tmp_path: Path) -> None:
    path = tmp_path / "sqlsentry.yaml"
    path.write_text(FRONT_MATTER.split("---")[1], encoding="utf-8")

    assert load_config(path).default_profile == "reports"


def test_markdown_without_front_matter_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "notes.md"
    path.write_text("# Just notes\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Expected YAML front matter"):
        load_config(path)


def test_invalid_yaml_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("profiles: [unterminated\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_config(path)


def test_missing_file_is_reported(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Configuration file not found"):
        load_config(tmp_path / "absent.md")


def test_config_path_resolution_order(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SQLSENTRY_CONFIG", raising=False)
    assert resolve_config_path() == tmp_path / ".sqlsentry.md"

    monkeypatch.setenv("SQLSENTRY_CONFIG", str(tmp_path / "from-env.md"))
    assert resolve_config_path() == tmp_path / "from-env.md"

    assert resolve_config_path(tmp_path / "explicit.yaml") == tmp_path / "explicit.yaml"


def test_load_config_from_working_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".sqlsentry.md").write_text(FRONT_MATTER, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SQLSENTRY_CONFIG", raising=False)

    assert load_config().default_profile == "reports"
