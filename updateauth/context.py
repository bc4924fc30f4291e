"""
Update context

The mutable, per-request record of what happened to each update: its
final status, its diagnostic messages and the Subject it was authorized
with. The authentication core writes into it but does not own it.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .messages import Message
from .subject import Subject
from .update import Update


class UpdateStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PENDING_AUTHENTICATION = "PENDING_AUTHENTICATION"
    FAILED_AUTHENTICATION = "FAILED_AUTHENTICATION"
    EXCEPTION = "EXCEPTION"


@dataclass
class _UpdateSlot:
    status: Optional[UpdateStatus] = None
    messages: List[Message] = field(default_factory=list)
    subject: Optional[Subject] = None


class UpdateContext:
    """
    Per-request container keyed by ``Update.update_id``.

    Each update owns its own slot; evaluations of different updates never
    touch each other's state.
    """

    def __init__(self):
        self._slots: Dict[str, _UpdateSlot] = {}
        self._lock = threading.RLock()

    def _slot(self, update: Update) -> _UpdateSlot:
        with self._lock:
            slot = self._slots.get(update.update_id)
            if slot is None:
                slot = _UpdateSlot()
                self._slots[update.update_id] = slot
            return slot

    def status(self, update: Update, status: UpdateStatus) -> None:
        self._slot(update).status = status

    def get_status(self, update: Update) -> Optional[UpdateStatus]:
        return self._slot(update).status

    def add_message(self, update: Update, message: Message) -> None:
        slot = self._slot(update)
        if message not in slot.messages:
            slot.messages.append(message)

    def get_messages(self, update: Update) -> List[Message]:
        return list(self._slot(update).messages)

    def has_errors(self, update: Update) -> bool:
        return any(m.is_error() for m in self._slot(update).messages)

    def subject(self, update: Update, subject: Subject) -> None:
        self._slot(update).subject = subject

    def get_subject(self, update: Update) -> Subject:
        return self._slot(update).subject or Subject.empty()

    def to_dict(self, update: Update) -> Dict[str, Any]:
        slot = self._slot(update)
        return {
            "status": slot.status.value if slot.status else None,
            "messages": [m.to_dict() for m in slot.messages],
            "subject": self.get_subject(update).to_dict(),
        }
