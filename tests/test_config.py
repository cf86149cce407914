from __future__ import annotations

from pathlib import Path

import yaml

from game_chatbot.config import DEFAULT_CONFIG, config_from_dict, load_config, write_default_config


def test_missing_file_is_created_with_defaults(tmp_path):
    path = tmp_path / "plugins" / "chatbot" / "config.yml"
    config = load_config(path)

    assert path.is_file()
    assert yaml.safe_load(path.read_text(encoding="utf-8")) == DEFAULT_CONFIG
    assert config.licensed
    assert config.token_type == "server"
    assert config.mail.enable is False
    assert config.database.type == "sqlite"
    assert config.database.path == str(path.parent / "chatbot.db")
    assert config.rules_directory == path.parent / "data"
    assert config.read_timeout_seconds == 10.0
    assert config.nearby_radius == 20


def test_absent_file_without_create_uses_defaults(tmp_path):
    config = load_config(tmp_path / "config.yml", create=False)
    assert not (tmp_path / "config.yml").exists()
    assert config.license == "free"
    assert config.system_prompt == ""


def test_existing_file_is_never_overwritten(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("license: paid\n", encoding="utf-8")

    assert write_default_config(path) is False
    config = load_config(path)
    assert path.read_text(encoding="utf-8") == "license: paid\n"
    assert config.licensed is False


def test_values_are_read_from_yaml(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        "\n".join(
            [
                "token:",
                "  type: player",
                "ai:",
                "  system:",
                "    prompt: You are a helpful villager.",
                "mail:",
                "  enable: true",
                "  type: Outlook",
                "  email: bot@example.com",
                "  password: secret",
                "database:",
                "  type: postgresql",
                "  host: db.internal",
                "  port: 5433",
                "rules:",
                "  directory: /srv/rules",
                "world:",
                "  read_timeout_seconds: null",
                "  nearby_radius: 32",
            ]
        ),
        encoding="utf-8",
    )
    config = load_config(path)

    assert config.token_type == "player"
    assert config.system_prompt == "You are a helpful villager."
    assert config.mail.enable is True
    assert config.mail.type == "outlook"
    assert config.database.type == "postgresql"
    assert config.database.port == 5433
    assert config.rules_directory == Path("/srv/rules")
    assert config.read_timeout_seconds is None
    assert config.nearby_radius == 32


def test_broken_yaml_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "config.yml"
    path.write_text("license: [unterminated\n", encoding="utf-8")

    with caplog.at_level("WARNING"):
        config = load_config(path)

    assert config.license == "free"
    assert "Failed to read chatbot config" in caplog.text


def test_config_from_dict_tolerates_wrong_shapes():
    config = config_from_dict({"mail": "yes", "world": {"nearby_radius": "lots"}})
    assert config.mail.enable is False
    assert config.nearby_radius == 20
    assert config.rules_directory == Path("data")
