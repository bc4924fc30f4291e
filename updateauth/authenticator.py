"""
Update Authenticator

The authorization engine for registry updates. For each update it:
- Chooses a path (trusted default override, explicit override, strategies)
- Runs every applicable authentication strategy in priority order
- Derives the granted principals from the authenticated maintainers
- Enforces the trusted-network restriction on maintainer-sponsored updates
- Records a terminal or pending status plus diagnostics on failure

Every failure mode of a well-formed update ends up as data in the
UpdateContext; nothing is raised to the caller.

The engine holds only read-only state built at construction, so one
instance may authenticate many updates concurrently.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Set

from . import config
from .context import UpdateContext, UpdateStatus
from .logging_config import audit_log, reset_update_id, set_update_id
from .messages import Message, UpdateMessages
from .network import IpRanges
from .pending import DeferredAuthenticationIndex, PendingAuthenticationResolver
from .principals import Maintainers, Principal, PrincipalRegistry
from .strategies import AuthenticationFailedException, AuthenticationStrategy, validate_strategies
from .subject import Subject
from .update import Origin, OverrideCredential, PasswordCredential, Record, Update
from .users import UserNotFoundError, UserStore


class AuthenticationPath(str, Enum):
    DEFAULT_OVERRIDE = "default_override"
    OVERRIDE = "override"
    STRATEGIES = "strategies"


_AUTHENTICATION_FAILURES = (UpdateStatus.PENDING_AUTHENTICATION, UpdateStatus.FAILED_AUTHENTICATION)


def authentication_path(origin: Origin, update: Update) -> AuthenticationPath:
    """Which route an update takes through the authenticator."""
    if origin.default_override:
        return AuthenticationPath.DEFAULT_OVERRIDE
    if update.override:
        return AuthenticationPath.OVERRIDE
    return AuthenticationPath.STRATEGIES


class Authenticator:
    """
    Composes the registered strategies into one authorization decision.

    Args:
        ip_ranges: The trusted network ranges
        user_store: Lookup of override users
        strategies: Authentication strategies, in priority order
        maintainers: Maintainer sets used to build the principal registry
        principal_registry: Prebuilt registry (instead of ``maintainers``)
        restrict_maintainer_network: Gate for the trusted-network
            restriction; defaults to the configured value
    """

    MAX_PASSWORD_CREDENTIALS = config.MAX_PASSWORD_CREDENTIALS

    def __init__(
        self,
        ip_ranges: IpRanges,
        user_store: UserStore,
        strategies: Sequence[AuthenticationStrategy] = (),
        maintainers: Optional[Maintainers] = None,
        principal_registry: Optional[PrincipalRegistry] = None,
        restrict_maintainer_network: Optional[bool] = None
    ):
        if maintainers is not None and principal_registry is not None:
            raise ValueError("Pass either maintainers or principal_registry, not both")

        self.ip_ranges = ip_ranges
        self.user_store = user_store
        self.strategies = tuple(validate_strategies(strategies))
        if principal_registry is None:
            principal_registry = PrincipalRegistry(maintainers)
        self.principal_registry = principal_registry
        self.deferred_index = DeferredAuthenticationIndex(self.strategies)
        self.pending_resolver = PendingAuthenticationResolver(self.deferred_index)

        if restrict_maintainer_network is None:
            restrict_maintainer_network = config.RESTRICT_MAINTAINER_NETWORK
        self.restrict_maintainer_network = restrict_maintainer_network

    def authenticate(self, origin: Origin, update: Update, update_context: UpdateContext) -> Subject:
        """
        Authenticate an update and attach the resulting Subject to the context.

        Returns:
            The Subject, also on failure (the status and messages are then
            recorded in ``update_context``)
        """
        token = set_update_id(update.update_id)
        try:
            path = authentication_path(origin, update)

            if path == AuthenticationPath.DEFAULT_OVERRIDE:
                subject = Subject.override()
            elif path == AuthenticationPath.OVERRIDE:
                subject = self._perform_override_authentication(origin, update, update_context)
            else:
                subject = self._perform_authentication(origin, update, update_context)

            update_context.subject(update, subject)

            status = update_context.get_status(update)
            audit_log.authentication_decision(
                path=path.value,
                status=status.value if status in _AUTHENTICATION_FAILURES else None,
                principals=[p.value for p in subject.principals],
                failed=subject.failed_authentications
            )
            return subject
        finally:
            reset_update_id(token)

    def _perform_override_authentication(
        self,
        origin: Origin,
        update: Update,
        update_context: UpdateContext
    ) -> Subject:
        override_credentials = update.credentials.of_type(OverrideCredential)
        messages: List[Message] = []

        if not origin.allow_admin_operations:
            messages.append(UpdateMessages.override_not_allowed_for_origin(origin.name))
        elif not self.ip_ranges.is_trusted(origin.from_address):
            messages.append(UpdateMessages.override_only_allowed_by_db_admins())

        if len(override_credentials) != 1:
            messages.append(UpdateMessages.multiple_override_passwords())

        if messages:
            audit_log.override_rejected(origin.name, origin.from_address, [m.formatted() for m in messages])
            self._authentication_failed(update, update_context, messages, Subject.empty())
            return Subject.empty()

        override_credential = override_credentials[0]
        for candidate in override_credential.possible_credentials:
            try:
                user = self.user_store.get_override_user(candidate.username)
            except UserNotFoundError:
                audit_log.unknown_override_user(candidate.username)
                continue

            if user.is_valid_password(candidate.password) and user.is_authorised_for(update.object_type):
                update_context.add_message(update, UpdateMessages.override_authentication_used())
                audit_log.override_used(candidate.username, update.object_type.value)
                return Subject.override()

        # Override failures are terminal: the empty Subject never resolves as pending
        messages.append(UpdateMessages.override_authentication_failed())
        audit_log.override_failed(
            origin.name,
            origin.from_address,
            [c.username for c in override_credential.possible_credentials]
        )
        self._authentication_failed(update, update_context, messages, Subject.empty())
        return Subject.empty()

    def _perform_authentication(
        self,
        origin: Origin,
        update: Update,
        update_context: UpdateContext
    ) -> Subject:
        messages: List[Message] = []
        authenticated: Dict[Record, None] = {}
        passed: Set[str] = set()
        failed: Set[str] = set()

        if len(update.credentials.of_type(PasswordCredential)) > self.MAX_PASSWORD_CREDENTIALS:
            messages.append(UpdateMessages.too_many_passwords_specified())
        else:
            for strategy in self.strategies:
                if not strategy.supports(update):
                    continue

                try:
                    records = strategy.authenticate(update, update_context)
                except AuthenticationFailedException as e:
                    messages.extend(e.messages)
                    failed.add(strategy.name)
                    audit_log.strategy_result(strategy.name, passed=False)
                else:
                    authenticated.update(dict.fromkeys(records))
                    passed.add(strategy.name)
                    audit_log.strategy_result(strategy.name, passed=True)

        principals: Set[Principal] = set()
        for record in authenticated:
            principals |= self._principals_for(record)

        if principals and not origin.default_override and self.restrict_maintainer_network:
            if not origin.allow_admin_operations or not self.ip_ranges.is_trusted(origin.from_address):
                messages.append(UpdateMessages.maintainer_updates_only_allowed_from_within_network())

        subject = Subject(principals, passed, failed)

        if messages:
            self._authentication_failed(update, update_context, messages, subject)

        return subject

    def _principals_for(self, record: Record) -> FrozenSet[Principal]:
        if not record.is_maintainer():
            return frozenset()
        return self.principal_registry.lookup(record.key)

    def _authentication_failed(
        self,
        update: Update,
        update_context: UpdateContext,
        messages: List[Message],
        subject: Subject
    ) -> None:
        # The resolver reads the Subject from the context, so attach it first
        update_context.subject(update, subject)

        if self.pending_resolver.is_pending(update, update_context):
            update_context.status(update, UpdateStatus.PENDING_AUTHENTICATION)
        else:
            update_context.status(update, UpdateStatus.FAILED_AUTHENTICATION)

        for message in dict.fromkeys(messages):
            update_context.add_message(update, message)
