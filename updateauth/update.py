"""
Update, Record, Credential and Origin types

The normalized representation of a proposed change to a registry record,
the credentials submitted with it and the channel it arrived on. These
objects are read-only to the authentication core.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar


class ObjectType(str, Enum):
    """Registry record types."""
    AS_BLOCK = "as-block"
    AS_SET = "as-set"
    AUT_NUM = "aut-num"
    DOMAIN = "domain"
    FILTER_SET = "filter-set"
    INET6NUM = "inet6num"
    INETNUM = "inetnum"
    INET_RTR = "inet-rtr"
    IRT = "irt"
    KEY_CERT = "key-cert"
    MNTNER = "mntner"
    ORGANISATION = "organisation"
    PEERING_SET = "peering-set"
    PERSON = "person"
    POEM = "poem"
    POETIC_FORM = "poetic-form"
    ROLE = "role"
    ROUTE = "route"
    ROUTE6 = "route6"
    ROUTE_SET = "route-set"
    RTR_SET = "rtr-set"


class Action(str, Enum):
    """What the update does to the record."""
    CREATE = "CREATE"
    MODIFY = "MODIFY"
    DELETE = "DELETE"
    NOOP = "NOOP"


@dataclass(frozen=True)
class Record:
    """
    An authenticated registry record, identified by type and key.

    Keys compare case-insensitively, so the same maintainer authenticated
    by two strategies collapses to one record.
    """
    object_type: ObjectType
    key: str = field(compare=False)
    lookup_key: str = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "lookup_key", self.key.strip().casefold())

    def is_maintainer(self) -> bool:
        return self.object_type == ObjectType.MNTNER


# ============================================================
# Credentials
# ============================================================

class Credential:
    """Base class for everything that can be submitted as proof of authority."""


@dataclass(frozen=True)
class PasswordCredential(Credential):
    password: str = field(repr=False)


@dataclass(frozen=True)
class SsoCredential(Credential):
    token: str = field(repr=False)


@dataclass(frozen=True)
class PgpCredential(Credential):
    key_id: str


@dataclass(frozen=True)
class UsernamePassword:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class OverrideCredential(Credential):
    """
    An override line, carrying one or more candidate username/password pairs.

    More than one candidate supports password rotation: candidates are tried
    in order and the first valid one wins.
    """
    possible_credentials: Tuple[UsernamePassword, ...] = ()
    remarks: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "OverrideCredential":
        """
        Parse an override value of the form ``username,password[,remarks]``.

        A value with fewer than two fields carries no candidate.
        """
        parts = [p.strip() for p in value.split(",", 2)]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            return cls(possible_credentials=(), remarks=None)

        remarks = parts[2] if len(parts) == 3 and parts[2] else None
        return cls(
            possible_credentials=(UsernamePassword(parts[0], parts[1]),),
            remarks=remarks
        )


C = TypeVar("C", bound=Credential)


class Credentials:
    """An ordered, duplicate-free collection of mixed credential variants."""

    def __init__(self, credentials: Iterable[Credential] = ()):
        self._credentials: Tuple[Credential, ...] = tuple(dict.fromkeys(credentials))

    def of_type(self, credential_type: Type[C]) -> List[C]:
        return [c for c in self._credentials if isinstance(c, credential_type)]

    def has(self, credential_type: Type[Credential]) -> bool:
        return any(isinstance(c, credential_type) for c in self._credentials)

    def __iter__(self):
        return iter(self._credentials)

    def __len__(self) -> int:
        return len(self._credentials)

    def __eq__(self, other) -> bool:
        return isinstance(other, Credentials) and self._credentials == other._credentials

    def __hash__(self) -> int:
        return hash(self._credentials)

    def __repr__(self) -> str:
        names = [type(c).__name__ for c in self._credentials]
        return f"Credentials({names})"


# ============================================================
# Update and Origin
# ============================================================

@dataclass(frozen=True)
class Update:
    """
    A prepared update: the change under evaluation.

    ``update_id`` identifies the update inside an UpdateContext.
    """
    object_type: ObjectType
    key: str
    action: Action
    credentials: Credentials = field(default_factory=Credentials)
    override: bool = False
    update_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "update_id": self.update_id,
            "object_type": self.object_type.value,
            "key": self.key,
            "action": self.action.value,
            "override": self.override,
        }


def create_update(
    object_type: ObjectType,
    key: str,
    action: Action = Action.MODIFY,
    credentials: Iterable[Credential] = (),
    override: Optional[bool] = None,
    update_id: Optional[str] = None
) -> Update:
    """
    Factory function to create an Update.

    If ``override`` is not given it is inferred from the presence of an
    override credential.
    """
    creds = Credentials(credentials)
    if override is None:
        override = creds.has(OverrideCredential)

    return Update(
        object_type=object_type,
        key=key,
        action=action,
        credentials=creds,
        override=override,
        update_id=update_id or str(uuid.uuid4())
    )


@dataclass(frozen=True)
class Origin:
    """
    Where an update came from.

    ``default_override`` marks trusted internal callers; it is never set
    from user input.
    """
    name: str
    from_address: str
    allow_admin_operations: bool = False
    default_override: bool = False

    @classmethod
    def internal(cls, name: str = "internal") -> "Origin":
        return cls(name=name, from_address="127.0.0.1", allow_admin_operations=True, default_override=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "from": self.from_address,
            "allow_admin_operations": self.allow_admin_operations,
            "default_override": self.default_override,
        }
