"""
Override users

The user store consulted by the override path. Passwords are stored as
Argon2id hashes (PyNaCl); a user is only usable for the record types it
is authorised for.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional

import nacl.pwhash
from nacl.exceptions import InvalidkeyError

from .update import ObjectType


class UserNotFoundError(LookupError):
    """The user store has no override user with this name."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Unknown override user: {username}")


def hash_password(
    password: str,
    opslimit: int = nacl.pwhash.argon2id.OPSLIMIT_INTERACTIVE,
    memlimit: int = nacl.pwhash.argon2id.MEMLIMIT_INTERACTIVE
) -> bytes:
    """Hash a password into a self-describing Argon2id string."""
    return nacl.pwhash.argon2id.str(password.encode("utf-8"), opslimit=opslimit, memlimit=memlimit)


@dataclass(frozen=True)
class User:
    username: str
    password_hash: bytes = field(repr=False)
    object_types: FrozenSet[ObjectType] = field(default_factory=frozenset)

    @classmethod
    def create(
        cls,
        username: str,
        password: str,
        object_types: Iterable[ObjectType],
        **hash_params
    ) -> "User":
        return cls(
            username=username,
            password_hash=hash_password(password, **hash_params),
            object_types=frozenset(object_types)
        )

    def is_valid_password(self, password: str) -> bool:
        try:
            return nacl.pwhash.verify(self.password_hash, password.encode("utf-8"))
        except InvalidkeyError:
            return False

    def is_authorised_for(self, object_type: ObjectType) -> bool:
        return object_type in self.object_types


class UserStore(ABC):
    """Lookup of override users."""

    @abstractmethod
    def get_override_user(self, username: str) -> User:
        """Return the user, or raise UserNotFoundError."""


class InMemoryUserStore(UserStore):
    """Dictionary-backed user store (for testing and embedded use)."""

    def __init__(self, users: Optional[Iterable[User]] = None):
        self._users: Dict[str, User] = {}
        self._lock = threading.RLock()
        for user in users or ():
            self.add(user)

    def add(self, user: User) -> None:
        with self._lock:
            self._users[user.username] = user

    def remove(self, username: str) -> None:
        with self._lock:
            self._users.pop(username, None)

    def get_override_user(self, username: str) -> User:
        with self._lock:
            user = self._users.get(username)
        if user is None:
            raise UserNotFoundError(username)
        return user
