"""
Diagnostic messages

Messages attached to an update by the authentication core. Strategy
messages are opaque; the ones below are produced by the core itself.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class MessageType(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


@dataclass(frozen=True)
class Message:
    """A single diagnostic. Equal messages collapse when accumulated."""
    type: MessageType
    text: str
    args: Tuple[Any, ...] = ()

    def formatted(self) -> str:
        return self.text % self.args if self.args else self.text

    def is_error(self) -> bool:
        return self.type == MessageType.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "text": self.formatted()}

    def __str__(self) -> str:
        return f"***{self.type.value}: {self.formatted()}"


def error(text: str, *args: Any) -> Message:
    return Message(MessageType.ERROR, text, args)


def warning(text: str, *args: Any) -> Message:
    return Message(MessageType.WARNING, text, args)


def info(text: str, *args: Any) -> Message:
    return Message(MessageType.INFO, text, args)


class UpdateMessages:
    """Messages emitted by the authentication core."""

    @staticmethod
    def too_many_passwords_specified() -> Message:
        return error("Too many passwords specified")

    @staticmethod
    def override_not_allowed_for_origin(origin_name: str) -> Message:
        return error("Override not allowed in %s", origin_name)

    @staticmethod
    def override_only_allowed_by_db_admins() -> Message:
        return error("Override only allowed by database administrators")

    @staticmethod
    def multiple_override_passwords() -> Message:
        return error("Multiple override passwords used")

    @staticmethod
    def override_authentication_used() -> Message:
        return info("Authorisation override used")

    @staticmethod
    def override_authentication_failed() -> Message:
        return error("Override authentication failed")

    @staticmethod
    def maintainer_updates_only_allowed_from_within_network() -> Message:
        return error("Authentication by registry maintainers only allowed from within the trusted network")
