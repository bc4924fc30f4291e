"""
Authentication strategies

The capability every pluggable authentication check exposes. The engine
never looks inside a strategy: it asks whether it applies, runs it, and
records its name as passed or failed.

Strategy contract:
- Applicability is a pure predicate over the update
- ``authenticate`` returns the records it authenticated, or raises
  AuthenticationFailedException carrying its diagnostic messages
- Any other exception is a defect in the strategy and propagates
"""

from abc import ABC, abstractmethod
from typing import FrozenSet, Iterable, List, Sequence, Set

from .context import UpdateContext
from .messages import Message
from .update import ObjectType, Record, Update


class AuthenticationFailedException(Exception):
    """Raised by a strategy whose check did not succeed."""

    def __init__(self, messages: Iterable[Message], authentication_candidates: Iterable[Record] = ()):
        self.messages: List[Message] = list(messages)
        self.authentication_candidates: List[Record] = list(authentication_candidates)
        super().__init__("; ".join(m.formatted() for m in self.messages) or "authentication failed")


class AuthenticationStrategy(ABC):
    """
    Abstract base class for all authentication checks.

    Subclasses set ``name``, the display name recorded in a Subject's
    passed/failed sets, and may set ``pending_authentication_types``, the
    record types for which a failure of this strategy alone may be deferred.
    """

    name: str = ""
    pending_authentication_types: FrozenSet[ObjectType] = frozenset()

    @abstractmethod
    def supports(self, update: Update) -> bool:
        """Does this strategy apply to the update."""

    @abstractmethod
    def authenticate(self, update: Update, update_context: UpdateContext) -> Set[Record]:
        """Authenticate the update. Must raise AuthenticationFailedException on failure."""

    def get_pending_authentication_types(self) -> FrozenSet[ObjectType]:
        return frozenset(self.pending_authentication_types)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def validate_strategies(strategies: Sequence[AuthenticationStrategy]) -> List[AuthenticationStrategy]:
    """
    Check a strategy registration list at startup.

    Every strategy needs a non-empty name, unique within the list.
    """
    seen: Set[str] = set()
    for strategy in strategies:
        if not isinstance(strategy, AuthenticationStrategy):
            raise ValueError(f"Not an authentication strategy: {strategy!r}")
        if not strategy.name:
            raise ValueError(f"Strategy {type(strategy).__name__} has no name")
        if strategy.name in seen:
            raise ValueError(f"Duplicate strategy name: {strategy.name}")
        seen.add(strategy.name)
    return list(strategies)
