from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_HEADER = """\
# Token Type Options:
#   - "server": Uses the shared token configured for the completion service.
#   - "player": Uses the player's personal token.
#
# Mail Configuration:
#   mail.enable: Whether to send the transcript by email when the player types "quit".
#   mail.type: Options are "gmail" or "outlook".
#   mail.email: The sender's email address.
#   mail.password: App password for SMTP login.
#   mail.owner: Optional fallback address (currently not used).
"""

DEFAULT_CONFIG: dict[str, Any] = {
    "license": "free",
    "token": {"type": "server"},
    "ai": {"system": {"prompt": ""}},
    "mail": {
        "enable": False,
        "type": "gmail",
        "email": "your-email@gmail.com",
        "password": "your-app-password",
        "owner": "owner@example.com",
    },
    "database": {"type": "sqlite", "url": "", "path": "chatbot.db"},
    "rules": {"directory": "data"},
    "world": {"read_timeout_seconds": 10, "nearby_radius": 20},
}


@dataclass(frozen=True)
class MailConfig:
    enable: bool = False
    type: str = "gmail"
    email: Optional[str] = None
    password: Optional[str] = None
    owner: Optional[str] = None


@dataclass(frozen=True)
class DatabaseConfig:
    type: str = "sqlite"
    url: str = ""
    path: str = "chatbot.db"
    host: str = "localhost"
    port: Optional[int] = None
    name: str = "chatbot"
    user: str = ""
    password: str = ""


@dataclass(frozen=True)
class ChatBotConfig:
    license: str = "free"
    token_type: str = "server"
    system_prompt: str = ""
    rules_directory: Path = Path("data")
    read_timeout_seconds: Optional[float] = 10.0
    nearby_radius: int = 20
    mail: MailConfig = field(default_factory=MailConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    @property
    def licensed(self) -> bool:
        return self.license.strip().lower() == "free"


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, dict) else {}


def _optional_float(value: Any, fallback: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return fallback


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def config_from_dict(raw: dict[str, Any] | None, *, base_dir: Path | None = None) -> ChatBotConfig:
    raw = raw if isinstance(raw, dict) else {}
    token = _section(raw, "token")
    system = _section(_section(raw, "ai"), "system")
    mail = _section(raw, "mail")
    database = _section(raw, "database")
    rules = _section(raw, "rules")
    world = _section(raw, "world")

    rules_directory = Path(str(rules.get("directory") or "data"))
    db_path = str(database.get("path") or "chatbot.db")
    if base_dir is not None:
        if not rules_directory.is_absolute():
            rules_directory = base_dir / rules_directory
        if db_path != ":memory:" and not Path(db_path).is_absolute():
            db_path = str(base_dir / db_path)

    return ChatBotConfig(
        license=str(raw.get("license") or "free"),
        token_type=str(token.get("type") or "server"),
        system_prompt=str(system.get("prompt") or ""),
        rules_directory=rules_directory,
        read_timeout_seconds=_optional_float(world.get("read_timeout_seconds", 10), 10.0),
        nearby_radius=_optional_int(world.get("nearby_radius")) or 20,
        mail=MailConfig(
            enable=bool(mail.get("enable", False)),
            type=str(mail.get("type") or "gmail").lower(),
            email=mail.get("email"),
            password=mail.get("password"),
            owner=mail.get("owner"),
        ),
        database=DatabaseConfig(
            type=str(database.get("type") or "sqlite"),
            url=str(database.get("url") or ""),
            path=db_path,
            host=str(database.get("host") or "localhost"),
            port=_optional_int(database.get("port")),
            name=str(database.get("name") or "chatbot"),
            user=str(database.get("user") or ""),
            password=str(database.get("password") or ""),
        ),
    )


def write_default_config(path: Path) -> bool:
    """Write ``config.yml`` with defaults unless it already exists."""
    path = Path(path)
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        body = yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False, default_flow_style=False)
        path.write_text(CONFIG_HEADER + "\n" + body, encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to create default chatbot config at %s: %s", path, exc)
        return False
    logger.info("Created default chatbot config: %s", path)
    return True


def load_config(path: Path | str, *, create: bool = True) -> ChatBotConfig:
    path = Path(path)
    if create:
        write_default_config(path)
    raw: Any = {}
    if path.exists():
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Failed to read chatbot config %s: %s", path, exc)
            raw = {}
    return config_from_dict(raw, base_dir=path.parent)
