"""
Test doubles shared by the updateauth test suite.
"""

import nacl.pwhash

from updateauth import (
    AuthenticationFailedException,
    AuthenticationStrategy,
    InMemoryUserStore,
    IpRanges,
    ObjectType,
    Origin,
    Record,
    User,
)
from updateauth.messages import error


TRUSTED_RANGES = ["10.0.0.0/8", "2001:db8::/32"]

TRUSTED_ORIGIN = Origin(name="syncupdates", from_address="10.1.2.3", allow_admin_operations=True)
TRUSTED_ADDRESS_NO_ADMIN = Origin(name="mailupdates", from_address="10.1.2.3", allow_admin_operations=False)
ADMIN_OUTSIDE_NETWORK = Origin(name="syncupdates", from_address="192.0.2.10", allow_admin_operations=True)
UNTRUSTED_ORIGIN = Origin(name="mailupdates", from_address="192.0.2.10", allow_admin_operations=False)
INTERNAL_ORIGIN = Origin.internal()


class FakeStrategy(AuthenticationStrategy):
    """
    A configurable strategy: authenticates ``records`` or fails with
    ``failure`` messages, and counts its invocations.
    """

    def __init__(self, name, records=(), failure=None, supports=True, pending_types=()):
        self.name = name
        self.records = set(records)
        self.failure = failure
        self._supports = supports
        self.pending_authentication_types = frozenset(pending_types)
        self.calls = 0

    def supports(self, update):
        if callable(self._supports):
            return self._supports(update)
        return self._supports

    def authenticate(self, update, update_context):
        self.calls += 1
        if self.failure is not None:
            raise AuthenticationFailedException(self.failure)
        return set(self.records)


def failing(name, text, pending_types=()):
    return FakeStrategy(name, failure=[error(text)], pending_types=pending_types)


def mntner(key):
    return Record(ObjectType.MNTNER, key)


def fast_user(username, password, object_types):
    """A user hashed with the cheapest Argon2id parameters."""
    return User.create(
        username,
        password,
        object_types,
        opslimit=nacl.pwhash.argon2id.OPSLIMIT_MIN,
        memlimit=nacl.pwhash.argon2id.MEMLIMIT_MIN,
    )


def user_store(*users):
    return InMemoryUserStore(users)


def trusted_ranges():
    return IpRanges(TRUSTED_RANGES)
