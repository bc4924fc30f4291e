"""
Authentication receipt tests

Receipts make decisions comparable: identical evaluations must produce
identical digests, and signed receipts must detect tampering.
"""

import dataclasses
import unittest

from updateauth import (
    Authenticator,
    Maintainers,
    ObjectType,
    ReceiptSigner,
    UpdateContext,
    build_receipt,
    canonicalize,
    create_update,
    verify_receipt,
)

from fakes import INTERNAL_ORIGIN, UNTRUSTED_ORIGIN, FakeStrategy, failing, mntner, trusted_ranges, user_store


class TestCanonicalize(unittest.TestCase):

    def test_key_ordering(self):
        self.assertEqual(canonicalize({"b": 1, "a": {"d": 2, "c": 3}}), b'{"a":{"c":3,"d":2},"b":1}')

    def test_sets_sorted(self):
        self.assertEqual(canonicalize({"s": frozenset({"b", "a", "c"})}), b'{"s":["a","b","c"]}')

    def test_enum_values(self):
        self.assertEqual(canonicalize([ObjectType.MNTNER]), b'["mntner"]')

    def test_unsupported_type(self):
        with self.assertRaises(ValueError):
            canonicalize({"x": object()})


class TestAuthenticationReceipt(unittest.TestCase):

    def setUp(self):
        self.authenticator = Authenticator(
            ip_ranges=trusted_ranges(),
            user_store=user_store(),
            strategies=[
                FakeStrategy("MntByAuthentication", records=[mntner("POWER-MNT")]),
                failing("MntLowerAuthentication", "mnt-lower failed"),
            ],
            maintainers=Maintainers(power=frozenset({"POWER-MNT"})),
            restrict_maintainer_network=True,
        )
        self.update = create_update(ObjectType.INETNUM, "10.0.0.0 - 10.0.0.255", update_id="u-1")

    def _receipt(self, origin=UNTRUSTED_ORIGIN):
        context = UpdateContext()
        self.authenticator.authenticate(origin, self.update, context)
        return build_receipt(origin, self.update, context)

    def test_receipt_content(self):
        receipt = self._receipt()

        self.assertEqual(receipt.path, "strategies")
        self.assertEqual(receipt.status, "FAILED_AUTHENTICATION")
        self.assertEqual(receipt.subject["principals"], ["POWER_MAINTAINER"])
        self.assertEqual(receipt.subject["failed_authentications"], ["MntLowerAuthentication"])
        self.assertEqual(len(receipt.messages), 2)
        self.assertEqual(receipt.to_dict()["decision_hash"], receipt.digest())

    def test_identical_evaluations_have_identical_digests(self):
        self.assertEqual(self._receipt().digest(), self._receipt().digest())

    def test_different_outcomes_have_different_digests(self):
        self.assertNotEqual(self._receipt().digest(), self._receipt(INTERNAL_ORIGIN).digest())

    def test_default_override_receipt(self):
        receipt = self._receipt(INTERNAL_ORIGIN)

        self.assertEqual(receipt.path, "default_override")
        self.assertIsNone(receipt.status)
        self.assertEqual(receipt.subject["principals"], ["OVERRIDE_MAINTAINER"])
        self.assertEqual(receipt.messages, [])


class TestReceiptSigning(unittest.TestCase):

    def setUp(self):
        authenticator = Authenticator(trusted_ranges(), user_store())
        update = create_update(ObjectType.PERSON, "JD1-TEST", update_id="u-2")
        context = UpdateContext()
        authenticator.authenticate(UNTRUSTED_ORIGIN, update, context)

        self.receipt = build_receipt(UNTRUSTED_ORIGIN, update, context)
        self.signer = ReceiptSigner("kid:updateauth-receipts-001")

    def test_sign_and_verify(self):
        signature = self.signer.sign(self.receipt)

        self.assertEqual(signature["key_id"], "kid:updateauth-receipts-001")
        self.assertEqual(signature["algorithm"], "Ed25519")
        self.assertTrue(verify_receipt(self.receipt, signature, self.signer.verify_key_b64))

    def test_tampered_receipt_fails(self):
        signature = self.signer.sign(self.receipt)
        tampered = dataclasses.replace(self.receipt, status="SUCCESS")

        self.assertFalse(verify_receipt(tampered, signature, self.signer.verify_key_b64))

    def test_wrong_key_fails(self):
        signature = self.signer.sign(self.receipt)
        other = ReceiptSigner("kid:other")

        self.assertFalse(verify_receipt(self.receipt, signature, other.verify_key_b64))

    def test_wrong_algorithm_fails(self):
        signature = dict(self.signer.sign(self.receipt), algorithm="RS256")

        self.assertFalse(verify_receipt(self.receipt, signature, self.signer.verify_key_b64))

    def test_garbage_signature_fails(self):
        signature = dict(self.signer.sign(self.receipt), sig="bm90IGEgc2lnbmF0dXJl")

        self.assertFalse(verify_receipt(self.receipt, signature, self.signer.verify_key_b64))


if __name__ == "__main__":
    unittest.main()
