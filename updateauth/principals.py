"""
Principal Registry

Maps maintainer names to the organisational roles ("principals") they
carry. The registry is built once from the configured maintainer sets and
is read-only afterwards, so concurrent evaluations can share it freely.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Set, Tuple


class Principal(str, Enum):
    """Roles that can be granted to the party sponsoring an update."""
    OVERRIDE_MAINTAINER = "OVERRIDE_MAINTAINER"
    POWER_MAINTAINER = "POWER_MAINTAINER"
    ENDUSER_MAINTAINER = "ENDUSER_MAINTAINER"
    ALLOC_MAINTAINER = "ALLOC_MAINTAINER"
    RS_MAINTAINER = "RS_MAINTAINER"
    ENUM_MAINTAINER = "ENUM_MAINTAINER"
    DBM_MAINTAINER = "DBM_MAINTAINER"


def normalize_name(name: str) -> str:
    """Maintainer names compare case-insensitively."""
    return name.strip().casefold()


@dataclass(frozen=True)
class Maintainers:
    """
    The configured maintainer sets, one per principal kind.

    A name may appear in several sets; it then carries every matching
    principal.
    """
    power: FrozenSet[str] = field(default_factory=frozenset)
    enduser: FrozenSet[str] = field(default_factory=frozenset)
    alloc: FrozenSet[str] = field(default_factory=frozenset)
    rs: FrozenSet[str] = field(default_factory=frozenset)
    enum: FrozenSet[str] = field(default_factory=frozenset)
    dbm: FrozenSet[str] = field(default_factory=frozenset)

    def principal_sets(self) -> Iterator[Tuple[FrozenSet[str], Principal]]:
        yield self.power, Principal.POWER_MAINTAINER
        yield self.enduser, Principal.ENDUSER_MAINTAINER
        yield self.alloc, Principal.ALLOC_MAINTAINER
        yield self.rs, Principal.RS_MAINTAINER
        yield self.enum, Principal.ENUM_MAINTAINER
        yield self.dbm, Principal.DBM_MAINTAINER


def build_principals_map(
    pairs: Iterable[Tuple[Iterable[str], Principal]]
) -> Mapping[str, FrozenSet[Principal]]:
    """
    Fold (maintainer names, principal) pairs into one name -> principals map.

    Names colliding across pairs accumulate the union of their principals.
    The returned mapping is read-only.
    """
    working: Dict[str, Set[Principal]] = {}

    for names, principal in pairs:
        if not isinstance(principal, Principal):
            raise ValueError(f"Not a principal: {principal!r}")
        for name in names:
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Invalid maintainer name for {principal.value}: {name!r}")
            working.setdefault(normalize_name(name), set()).add(principal)

    return MappingProxyType({name: frozenset(p) for name, p in working.items()})


class PrincipalRegistry:
    """Read-only lookup of the principals carried by a maintainer."""

    def __init__(
        self,
        maintainers: Optional[Maintainers] = None,
        pairs: Optional[Iterable[Tuple[Iterable[str], Principal]]] = None
    ):
        """
        Build from the configured maintainer sets, or from raw
        (names, principal) pairs. Giving both is an error.
        """
        if maintainers is not None and pairs is not None:
            raise ValueError("Pass either maintainers or pairs, not both")
        if pairs is None:
            pairs = (maintainers or Maintainers()).principal_sets()
        self._principals = build_principals_map(pairs)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Iterable[str], Principal]]) -> "PrincipalRegistry":
        return cls(pairs=pairs)

    def lookup(self, name: str) -> FrozenSet[Principal]:
        """Return the principals for a maintainer, or an empty set if unknown."""
        return self._principals.get(normalize_name(name), frozenset())

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._principals

    def __len__(self) -> int:
        return len(self._principals)
