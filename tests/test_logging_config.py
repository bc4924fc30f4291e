"""
Logging tests
"""

import io
import json
import logging
import os
import subprocess
import sys
import unittest
from unittest import mock

from updateauth import Authenticator, ObjectType, OverrideCredential, UpdateContext, config, create_update
from updateauth.logging_config import (
    PACKAGE_LOGGER,
    AuditLogger,
    StructuredFormatter,
    configure_from_env,
    configure_logging,
    get_update_id,
    reset_update_id,
    set_update_id,
)

from fakes import UNTRUSTED_ORIGIN, failing, trusted_ranges, user_store


class TestStructuredFormatter(unittest.TestCase):

    def _record(self, msg="hello"):
        return logging.LogRecord("updateauth.test", logging.INFO, __file__, 10, msg, (), None)

    def test_json_output(self):
        data = json.loads(StructuredFormatter().format(self._record()))

        self.assertEqual(data["level"], "INFO")
        self.assertEqual(data["logger"], "updateauth.test")
        self.assertEqual(data["message"], "hello")
        self.assertNotIn("update_id", data)

    def test_update_id_included(self):
        token = set_update_id("u-42")
        try:
            data = json.loads(StructuredFormatter().format(self._record()))
        finally:
            reset_update_id(token)

        self.assertEqual(data["update_id"], "u-42")
        self.assertEqual(get_update_id(), "")

    def test_extra_fields_included(self):
        record = self._record()
        record.extra_fields = {"event_type": "OVERRIDE_USED", "username": "dbadmin"}

        data = json.loads(StructuredFormatter().format(record))

        self.assertEqual(data["event_type"], "OVERRIDE_USED")
        self.assertEqual(data["username"], "dbadmin")


    def test_env_included(self):
        data = json.loads(StructuredFormatter(env="prod").format(self._record()))
        self.assertEqual(data["env"], "prod")

    def test_env_defaults_to_config(self):
        data = json.loads(StructuredFormatter().format(self._record()))
        self.assertEqual(data["env"], config.ENV)


class TestAuditLogger(unittest.TestCase):

    def test_unknown_override_user_is_info(self):
        audit = AuditLogger("updateauth.audit.test")

        with self.assertLogs("updateauth.audit.test", level="INFO") as cm:
            audit.unknown_override_user("nobody")

        self.assertEqual(cm.records[0].levelno, logging.INFO)
        self.assertEqual(cm.records[0].extra_fields["username"], "nobody")

    def test_failed_decision_is_warning(self):
        authenticator = Authenticator(trusted_ranges(), user_store(), strategies=[failing("A", "failed")])
        update = create_update(ObjectType.INETNUM, "10.0.0.0/24", update_id="u-7")

        with self.assertLogs("updateauth.audit", level="INFO") as cm:
            authenticator.authenticate(UNTRUSTED_ORIGIN, update, UpdateContext())

        decisions = [r for r in cm.records if r.extra_fields["event_type"] == "AUTHENTICATION_DECISION"]
        self.assertEqual(len(decisions), 1)
        self.assertEqual(decisions[0].levelno, logging.WARNING)
        self.assertEqual(decisions[0].extra_fields["update_id"], "u-7")
        self.assertEqual(decisions[0].extra_fields["status"], "FAILED_AUTHENTICATION")

    def test_rejected_override_is_warning(self):
        authenticator = Authenticator(trusted_ranges(), user_store())
        update = create_update(ObjectType.INETNUM, "10.0.0.0/24", credentials=[OverrideCredential.parse("dbadmin,secret")])

        with self.assertLogs("updateauth.audit", level="INFO") as cm:
            authenticator.authenticate(UNTRUSTED_ORIGIN, update, UpdateContext())

        rejected = [r for r in cm.records if r.extra_fields["event_type"] == "OVERRIDE_REJECTED"]
        self.assertEqual(len(rejected), 1)
        self.assertEqual(rejected[0].levelno, logging.WARNING)
        self.assertEqual(rejected[0].extra_fields["origin"], "mailupdates")
        self.assertEqual(rejected[0].extra_fields["reasons"], ["Override not allowed in mailupdates"])

    def test_update_id_reset_after_authentication(self):
        authenticator = Authenticator(trusted_ranges(), user_store())
        update = create_update(ObjectType.PERSON, "JD1-TEST")

        authenticator.authenticate(UNTRUSTED_ORIGIN, update, UpdateContext())

        self.assertEqual(get_update_id(), "")


class TestConfigureLogging(unittest.TestCase):

    def setUp(self):
        self.logger = logging.getLogger(PACKAGE_LOGGER)
        self.saved = (self.logger.level, self.logger.handlers[:], self.logger.propagate)

    def tearDown(self):
        level, handlers, propagate = self.saved
        self.logger.setLevel(level)
        self.logger.handlers[:] = handlers
        self.logger.propagate = propagate

    def test_json_output(self):
        stream = io.StringIO()
        configure_logging("debug", json_format=True, stream=stream)

        logging.getLogger("updateauth.engine").debug("ready")

        data = json.loads(stream.getvalue())
        self.assertEqual(self.logger.level, logging.DEBUG)
        self.assertEqual(data["level"], "DEBUG")
        self.assertEqual(data["logger"], "updateauth.engine")
        self.assertEqual(data["message"], "ready")

    def test_level_filters(self):
        stream = io.StringIO()
        configure_logging("WARNING", stream=stream)

        logging.getLogger("updateauth.engine").info("quiet")

        self.assertEqual(stream.getvalue(), "")

    def test_plain_output_carries_update_id(self):
        stream = io.StringIO()
        configure_logging("INFO", json_format=False, stream=stream)

        token = set_update_id("u-9")
        try:
            logging.getLogger("updateauth.engine").info("hello")
        finally:
            reset_update_id(token)
        logging.getLogger("updateauth.engine").info("outside")

        lines = stream.getvalue().splitlines()
        self.assertIn("[u-9] hello", lines[0])
        self.assertIn("[-] outside", lines[1])

    def test_reconfigure_replaces_handler(self):
        configure_logging(stream=io.StringIO())
        configure_logging(stream=io.StringIO())

        self.assertEqual(len(self.logger.handlers), 1)
        self.assertFalse(self.logger.propagate)

    def test_unknown_level(self):
        with self.assertRaises(ValueError):
            configure_logging("LOUD", stream=io.StringIO())

    def test_configure_from_env(self):
        stream = io.StringIO()
        with mock.patch.object(config, "LOG_LEVEL", "ERROR"), mock.patch.object(config, "LOG_JSON", False):
            configure_from_env(stream)

        self.assertEqual(self.logger.level, logging.ERROR)
        self.assertNotIsInstance(self.logger.handlers[0].formatter, StructuredFormatter)

    def test_environment_reaches_package_logger(self):
        root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        env = dict(os.environ, UPDATEAUTH_LOG_LEVEL="DEBUG", UPDATEAUTH_LOG_JSON="false")
        code = (
            "import logging\n"
            "from updateauth.logging_config import configure_from_env\n"
            "logger = configure_from_env()\n"
            "print(logger.level, type(logger.handlers[0].formatter).__name__)\n"
        )

        result = subprocess.run(
            [sys.executable, "-c", code],
            cwd=root, env=env, capture_output=True, text=True, check=True
        )

        self.assertEqual(result.stdout.split(), ["10", "Formatter"])


if __name__ == "__main__":
    unittest.main()
