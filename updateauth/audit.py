"""
Authentication receipts

A receipt is the auditable record of one authentication: which update,
from which origin, along which path, with what Subject, status and
messages. Receipts are encoded canonically so that identical decisions
produce identical bytes and digests, and can be signed with Ed25519.

Canonical encoding:
- Object keys sorted lexicographically
- No whitespace between tokens
- UTF-8, no ASCII escaping
- Sets emitted as sorted arrays, enums as their values
"""

import base64
import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .authenticator import authentication_path
from .context import UpdateContext
from .update import Origin, Update

RECEIPT_VERSION = "1.0"


def canonicalize(obj: Any) -> bytes:
    """Encode an object as canonical JSON bytes."""
    return json.dumps(
        _canonical_value(obj),
        separators=(',', ':'),
        ensure_ascii=False,
        sort_keys=True
    ).encode('utf-8')


def _canonical_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _canonical_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical_value(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_canonical_value(v) for v in value)
    raise ValueError(f"Cannot canonicalize type: {type(value)}")


def sha256_hash(data: bytes) -> str:
    """SHA-256 digest in the form ``sha256:<lowercase hex>``."""
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


@dataclass(frozen=True)
class AuthenticationReceipt:
    update: Dict[str, Any]
    origin: Dict[str, Any]
    path: str
    status: Optional[str]
    subject: Dict[str, Any]
    messages: List[Dict[str, Any]]
    issued_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )
    receipt_version: str = RECEIPT_VERSION

    def decision(self) -> Dict[str, Any]:
        """Everything that determines the decision; excludes the issue time."""
        return {
            "receipt_version": self.receipt_version,
            "update": self.update,
            "origin": self.origin,
            "path": self.path,
            "status": self.status,
            "subject": self.subject,
            "messages": self.messages,
        }

    def digest(self) -> str:
        return sha256_hash(canonicalize(self.decision()))

    def to_dict(self) -> Dict[str, Any]:
        d = self.decision()
        d["issued_at"] = self.issued_at
        d["decision_hash"] = self.digest()
        return d

    def canonical_bytes(self) -> bytes:
        return canonicalize(self.to_dict())


def build_receipt(origin: Origin, update: Update, update_context: UpdateContext) -> AuthenticationReceipt:
    """Capture the outcome recorded in ``update_context`` for an authenticated update."""
    status = update_context.get_status(update)
    return AuthenticationReceipt(
        update=update.to_dict(),
        origin=origin.to_dict(),
        path=authentication_path(origin, update).value,
        status=status.value if status else None,
        subject=update_context.get_subject(update).to_dict(),
        messages=[m.to_dict() for m in update_context.get_messages(update)],
    )


class ReceiptSigner:
    """Ed25519 signing of receipts."""

    ALGORITHM = "Ed25519"

    def __init__(self, key_id: str, signing_key: Optional[SigningKey] = None):
        self.key_id = key_id
        self._signing_key = signing_key or SigningKey.generate()

    @classmethod
    def from_seed_b64(cls, key_id: str, seed_b64: str) -> "ReceiptSigner":
        return cls(key_id, SigningKey(base64.b64decode(seed_b64)))

    @property
    def verify_key_b64(self) -> str:
        return base64.b64encode(bytes(self._signing_key.verify_key)).decode('utf-8')

    def sign(self, receipt: AuthenticationReceipt) -> Dict[str, str]:
        signature = self._signing_key.sign(receipt.canonical_bytes()).signature
        return {
            "key_id": self.key_id,
            "algorithm": self.ALGORITHM,
            "sig": base64.b64encode(signature).decode('utf-8'),
        }


def verify_receipt(receipt: AuthenticationReceipt, signature: Dict[str, str], verify_key_b64: str) -> bool:
    """Check a receipt signature. Returns False for any mismatch."""
    if signature.get("algorithm") != ReceiptSigner.ALGORITHM:
        return False
    try:
        verify_key = VerifyKey(base64.b64decode(verify_key_b64))
        verify_key.verify(receipt.canonical_bytes(), base64.b64decode(signature["sig"]))
    except (BadSignatureError, KeyError, ValueError):
        return False
    return True
