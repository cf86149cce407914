from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from .core.errors import ValidationError
from .core.sessions import SessionRegistry
from .core.ports import EmailStorePort

logger = logging.getLogger(__name__)

USAGE = [
    "Usage:",
    "/ai chatbot {platform} {model}",
    "/ai chatbot set email {your@email.com}",
]


def _filter_prefix(options: Iterable[str], prefix: str) -> list[str]:
    prefix = prefix.lower()
    return [option for option in options if option.lower().startswith(prefix)]


class ChatBotCommand:
    """Handler and tab completer for ``/ai chatbot``.

    ``args`` are the words after ``/ai chatbot``. Replies are returned as a
    list of lines; the host decides how to show them.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        email_store: EmailStorePort | None,
        models: Mapping[str, Iterable[str]],
    ):
        self._registry = registry
        self._email_store = email_store
        self._models = {platform: tuple(names) for platform, names in models.items()}

    def validate_model(self, platform: str, model: str) -> None:
        if platform not in self._models:
            raise ValidationError(f"Unknown platform: {platform}")
        if model not in self._models[platform]:
            raise ValidationError(f"Unknown model: {model} for platform {platform}")

    def handle(self, player_id: str, args: Sequence[str]) -> list[str]:
        args = list(args)
        if len(args) >= 3 and args[0].lower() == "set" and args[1].lower() == "email":
            return self._set_email(player_id, args[2])

        if not args:
            return list(USAGE)
        if len(args) == 1:
            return [f"Missing model name. Usage: /ai chatbot {args[0]} <model>"]

        platform, model = args[0], args[1]
        try:
            self.validate_model(platform, model)
        except ValidationError as exc:
            return [str(exc)]

        self._registry.start_conversation(player_id, platform, model)
        logger.debug("Started %s/%s conversation for %s", platform, model, player_id)
        return [
            "You are now chatting with the AI.",
            "Type your message in chat. Type 'quit' to end the conversation.",
        ]

    def _set_email(self, player_id: str, email: str) -> list[str]:
        if self._email_store is not None and self._email_store.set_email(player_id, email):
            return ["Your email has been saved successfully."]
        return ["Invalid email format or database error."]

    def complete(self, args: Sequence[str]) -> list[str]:
        if len(args) == 1:
            return _filter_prefix(sorted([*self._models, "set"]), args[0])
        if len(args) == 2 and args[0].lower() == "set":
            return _filter_prefix(["email"], args[1])
        if len(args) == 2:
            names = self._models.get(args[0])
            if names is None:
                return []
            return _filter_prefix(sorted(names), args[1])
        return []
