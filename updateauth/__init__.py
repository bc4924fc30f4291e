"""
updateauth: update authorization for registry databases

Given a proposed change to a registry record and the credentials submitted
with it, decides whether the change is authorized, which principals
sponsored it, and whether a failure is terminal or pending further proof.

The individual authentication checks are pluggable strategies; this
package composes them into one auditable decision.

Usage:
    from updateauth import (
        Authenticator,
        IpRanges,
        InMemoryUserStore,
        Maintainers,
        Origin,
        UpdateContext,
        create_update,
    )

    authenticator = Authenticator(
        ip_ranges=IpRanges(["193.0.0.0/21"]),
        user_store=InMemoryUserStore(),
        strategies=[MntByAuthentication(), ...],
        maintainers=Maintainers(power=frozenset({"REGISTRY-HM-MNT"})),
    )

    context = UpdateContext()
    subject = authenticator.authenticate(origin, update, context)

    if context.get_status(update) is None:
        # authenticated; subject.principals holds the granted roles
        ...
"""

__version__ = "1.0.0"

from .principals import (
    Principal,
    Maintainers,
    PrincipalRegistry,
    build_principals_map,
)

from .update import (
    Action,
    Credential,
    Credentials,
    ObjectType,
    Origin,
    OverrideCredential,
    PasswordCredential,
    PgpCredential,
    Record,
    SsoCredential,
    Update,
    UsernamePassword,
    create_update,
)

from .messages import Message, MessageType, UpdateMessages

from .subject import Subject

from .context import UpdateContext, UpdateStatus

from .strategies import (
    AuthenticationFailedException,
    AuthenticationStrategy,
    validate_strategies,
)

from .pending import DeferredAuthenticationIndex, PendingAuthenticationResolver

from .network import IpRanges

from .users import (
    InMemoryUserStore,
    User,
    UserNotFoundError,
    UserStore,
    hash_password,
)

from .authenticator import (
    AuthenticationPath,
    Authenticator,
    authentication_path,
)

from .audit import (
    AuthenticationReceipt,
    ReceiptSigner,
    build_receipt,
    canonicalize,
    verify_receipt,
)


__all__ = [
    "__version__",

    # Principals
    "Principal",
    "Maintainers",
    "PrincipalRegistry",
    "build_principals_map",

    # Updates and credentials
    "Action",
    "Credential",
    "Credentials",
    "ObjectType",
    "Origin",
    "OverrideCredential",
    "PasswordCredential",
    "PgpCredential",
    "Record",
    "SsoCredential",
    "Update",
    "UsernamePassword",
    "create_update",

    # Messages, Subject, context
    "Message",
    "MessageType",
    "UpdateMessages",
    "Subject",
    "UpdateContext",
    "UpdateStatus",

    # Strategies
    "AuthenticationFailedException",
    "AuthenticationStrategy",
    "validate_strategies",
    "DeferredAuthenticationIndex",
    "PendingAuthenticationResolver",

    # Collaborators
    "IpRanges",
    "InMemoryUserStore",
    "User",
    "UserNotFoundError",
    "UserStore",
    "hash_password",

    # Engine
    "AuthenticationPath",
    "Authenticator",
    "authentication_path",

    # Audit
    "AuthenticationReceipt",
    "ReceiptSigner",
    "build_receipt",
    "canonicalize",
    "verify_receipt",
]
