"""
Pending authentication

Decides whether a failed authentication is terminal or may be deferred
until the missing proof is submitted.

A failure is pending only if:
- the update has no other errors
- the update creates a new record
- every failed strategy may be deferred for the record type
- at least one deferrable strategy passed
"""

from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Set

from .context import UpdateContext
from .strategies import AuthenticationStrategy
from .update import Action, ObjectType, Update


class DeferredAuthenticationIndex:
    """Record type -> strategies whose failure may be deferred for that type."""

    def __init__(self, strategies: Iterable[AuthenticationStrategy]):
        working: Dict[ObjectType, Set[AuthenticationStrategy]] = {}
        for strategy in strategies:
            for object_type in strategy.get_pending_authentication_types():
                working.setdefault(object_type, set()).add(strategy)

        self._strategies: Mapping[ObjectType, FrozenSet[AuthenticationStrategy]] = MappingProxyType(
            {t: frozenset(s) for t, s in working.items()}
        )
        self._names: Mapping[ObjectType, FrozenSet[str]] = MappingProxyType(
            {t: frozenset(s.name for s in group) for t, group in self._strategies.items()}
        )

    def strategies_for(self, object_type: ObjectType) -> FrozenSet[AuthenticationStrategy]:
        return self._strategies.get(object_type, frozenset())

    def names_for(self, object_type: ObjectType) -> FrozenSet[str]:
        return self._names.get(object_type, frozenset())

    def object_types(self) -> FrozenSet[ObjectType]:
        return frozenset(self._strategies)


class PendingAuthenticationResolver:
    """Classifies an authentication failure as pending or terminal."""

    def __init__(self, index: DeferredAuthenticationIndex):
        self.index = index

    def is_pending(self, update: Update, update_context: UpdateContext) -> bool:
        if update_context.has_errors(update):
            return False

        if update.action != Action.CREATE:
            return False

        deferrable = self.index.names_for(update.object_type)
        if not deferrable:
            return False

        subject = update_context.get_subject(update)
        failed_deferrable_only = subject.failed_authentications <= deferrable
        passed_at_least_one = not subject.passed_authentications.isdisjoint(deferrable)

        return failed_deferrable_only and passed_at_least_one
