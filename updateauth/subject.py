"""
Subject

The complete authorization outcome of one update evaluation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet

from .principals import Principal


@dataclass(frozen=True)
class Subject:
    """
    Granted principals plus the names of the strategies that passed and
    failed. A Subject is immutable; the empty Subject is the result of an
    authentication that failed before any strategy ran.
    """
    principals: FrozenSet[Principal] = field(default_factory=frozenset)
    passed_authentications: FrozenSet[str] = field(default_factory=frozenset)
    failed_authentications: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept any iterable, store frozensets
        object.__setattr__(self, "principals", frozenset(self.principals))
        object.__setattr__(self, "passed_authentications", frozenset(self.passed_authentications))
        object.__setattr__(self, "failed_authentications", frozenset(self.failed_authentications))

    @classmethod
    def empty(cls) -> "Subject":
        return cls()

    @classmethod
    def of(cls, *principals: Principal) -> "Subject":
        return cls(principals=frozenset(principals))

    @classmethod
    def override(cls) -> "Subject":
        return cls.of(Principal.OVERRIDE_MAINTAINER)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principals": sorted(p.value for p in self.principals),
            "passed_authentications": sorted(self.passed_authentications),
            "failed_authentications": sorted(self.failed_authentications),
        }
