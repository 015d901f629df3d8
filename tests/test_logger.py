"""
Test module for lambda_logger.logger
"""

import json
import re
import sys
from unittest.mock import Mock

import pytest

from lambda_logger import (
    LOG_DELIMITER,
    REDACTION,
    BearerRedactor,
    IllegalLogLevelError,
    IllegalSeverityError,
    LambdaLogger,
    ReservedKeyError,
    UnsupportedRedactorError,
    is_in_test_mode,
)
from lambda_logger.events import BEFORE_HANDLER

# A made-up token with the shape of a signed JWT.
TOKEN_HEADER = "eyJhbGciOiJSUzI1NiIsImtpZCI6InRlc3Qta2V5LTEifQ"
TOKEN_PAYLOAD = (
    "eyJzdWIiOiJ1c2VyLTEyMyIsImF1ZCI6Im9yZGVycy1hcGkiLCJpYXQiOjE3MDAwMDAwMDAsImV4cCI6"
    "MTcwMDAwMzYwMCwic2NwIjpbIm9yZGVyczpyZWFkIiwib3JkZXJzOndyaXRlIl19"
)
TOKEN_SIGNATURE = (
    "Qm9ndXNTaWduYXR1cmVGb3JUZXN0aW5nT25seV9Ob3RBUmVhbFRva2VuLWFiY2RlZmdoaWprbG1ub3Bx"
    "cnN0dXZ3eHl6MDEyMzQ1Njc4OV9BQkNERUZHSElKS0xNTk9QUVJTVFVWV1hZWg"
)
TEST_TOKEN = f"{TOKEN_HEADER}.{TOKEN_PAYLOAD}.{TOKEN_SIGNATURE}"
SUB_SIGNATURE = TOKEN_SIGNATURE[-60:]


def create_logger(**kwargs):
    kwargs.setdefault("use_global_error_handler", False)
    kwargs.setdefault("test_mode", False)
    return LambdaLogger(**kwargs)


def assert_token_redacted(line):
    assert REDACTION in line
    assert TEST_TOKEN not in line
    assert TOKEN_SIGNATURE not in line
    assert SUB_SIGNATURE not in line


class TestLambdaLogger:
    """Test cases for LambdaLogger construction and logging."""

    def test_returns_logger(self):
        logger = create_logger()

        for name in (
            "info",
            "error",
            "warn",
            "debug",
            "handler",
            "set_key",
            "set_minimum_log_level",
            "create_sub_logger",
            "events",
        ):
            assert hasattr(logger, name)

    def test_writes_info_to_console(self, console):
        logger = create_logger()
        logger.info("test")
        logger.debug("bug")

        line = console.info.call_args[0][0]
        assert "test |" in line
        assert LOG_DELIMITER in line
        assert "bug" in console.debug.call_args[0][0]

    def test_routes_severities_to_their_channel(self, console):
        logger = create_logger()
        logger.warn("careful")
        logger.error("broken")

        assert console.warn.call_count == 1
        assert console.error.call_count == 1
        assert console.info.call_count == 0

    def test_stringifies_objects_with_circular_props(self, console):
        logger = create_logger()
        message = {"name": "tim", "sub": {"age": 30, "sub2": {"thing": "stuff"}}}
        message["circ"] = message

        logger.info(message)

        assert '"circ": "[Circular]"' in console.info.call_args[0][0]

    def test_includes_detailed_message(self, get_parsed_log):
        logger = create_logger()
        logger.set_key("detail", "value")
        logger.info("message")

        log = get_parsed_log()
        assert log["message"] == "message"
        assert log["detail"] == "value"
        assert log["severity"] == "INFO"
        assert "contextPath" not in log

    def test_joins_multiple_arguments(self, get_parsed_log):
        logger = create_logger()
        logger.info("count", 3, {"a": 1})

        assert get_parsed_log()["message"] == 'count 3 {\n  "a": 1\n}'

    def test_evaluates_lazy_keys_on_every_call(self, get_parsed_log):
        logger = create_logger()
        calls = iter(range(10))
        logger.set_key("counter", lambda: next(calls))

        logger.info("first")
        logger.info("second")

        assert get_parsed_log(index=0)["counter"] == 0
        assert get_parsed_log(index=1)["counter"] == 1

    def test_remove_key(self, get_parsed_log):
        logger = create_logger()
        logger.set_key("detail", "value")
        logger.remove_key("detail")
        logger.info("message")

        assert "detail" not in get_parsed_log()

    @pytest.mark.parametrize("key", ["message", "severity"])
    def test_throws_if_setting_reserved_key(self, key):
        logger = create_logger()

        with pytest.raises(ReservedKeyError, match="reserved"):
            logger.set_key(key, "test")

    def test_throws_on_illegal_severity(self):
        logger = create_logger()

        with pytest.raises(IllegalSeverityError, match="illegal severity"):
            logger.log("fatal", "message")

    @pytest.mark.parametrize("level", ["info", "VERBOSE", "", "Silent"])
    def test_throws_on_illegal_log_level(self, level):
        logger = create_logger()

        with pytest.raises(IllegalLogLevelError):
            logger.set_minimum_log_level(level)

    def test_throws_on_illegal_initial_log_level(self):
        with pytest.raises(IllegalLogLevelError):
            create_logger(minimum_log_level="TRACE")

    def test_throws_on_unsupported_redactor(self):
        with pytest.raises(UnsupportedRedactorError, match="not supported"):
            create_logger(redactors=[42])


class TestSeverityGate:
    """Test cases for minimum log level suppression."""

    def test_suppress_messages_below_minimum_severity(self, console, get_log):
        logger = create_logger()
        logger.set_minimum_log_level("INFO")
        logger.debug("skip")
        logger.info("include")

        line = get_log()
        assert "include |" in line
        assert LOG_DELIMITER in line
        assert console.info.call_count == 1
        assert console.debug.call_count == 0

    def test_suppress_messages_below_minimum_severity_for_errors(
        self, console, get_log
    ):
        logger = create_logger()
        logger.set_minimum_log_level("WARN")
        logger.info("skip")
        logger.warn("include")

        line = get_log("warn")
        assert "include |" in line
        assert LOG_DELIMITER in line
        assert console.warn.call_count == 1
        assert console.info.call_count == 0

    def test_suppress_all_messages_for_silent(self, console):
        logger = create_logger(minimum_log_level="SILENT")
        logger.info("skip")
        logger.error("skip")

        assert console.error.call_count == 0
        assert console.info.call_count == 0

    @pytest.mark.parametrize(
        "lower, higher",
        [
            ("debug", "info"),
            ("debug", "warn"),
            ("debug", "error"),
            ("info", "warn"),
            ("info", "error"),
            ("warn", "error"),
        ],
    )
    def test_threshold_orders_severities(self, console, lower, higher):
        logger = create_logger(minimum_log_level=higher.upper())

        logger.log(lower, "skip")
        logger.log(higher, "include")

        assert getattr(console, lower).call_count == 0
        assert getattr(console, higher).call_count == 1

    def test_suppressed_calls_do_no_work(self, console):
        formatter = Mock(return_value="line")
        lazy = Mock(return_value="value")
        logger = create_logger(formatter=formatter, minimum_log_level="ERROR")
        logger.set_key("lazy", lazy)

        logger.info("skip")

        formatter.assert_not_called()
        lazy.assert_not_called()
        console.info.assert_not_called()


class TestSubLogger:
    """Test cases for sub-loggers."""

    def test_sub_logger_writes_info_to_console(self, get_log, get_parsed_log):
        logger = create_logger()
        logger.set_key("detail", "value")

        sub = logger.create_sub_logger("db")
        sub.info("sub message")

        assert "db sub message |" in get_log()
        log = get_parsed_log()
        assert log["message"] == "sub message"
        assert log["detail"] == "value"
        assert log["severity"] == "INFO"
        assert log["contextPath"] == "db"

    def test_nested_sub_loggers_join_path(self, get_log, get_parsed_log):
        logger = create_logger()
        sub = logger.create_sub_logger("db").create_sub_logger("query")
        sub.info("took 12ms")

        assert get_log().startswith(" db.query took 12ms |")
        assert get_parsed_log()["contextPath"] == "db.query"

    def test_sub_logger_respects_parent_minimum_log_level(
        self, console, get_log, get_parsed_log
    ):
        logger = create_logger()
        logger.set_minimum_log_level("WARN")
        logger.set_key("detail", "value")

        sub = logger.create_sub_logger("db")
        sub.info("skip")
        sub.warn("sub message")

        assert console.info.call_count == 0
        assert console.warn.call_count == 1
        assert "db sub message |" in get_log("warn")
        log = get_parsed_log("warn")
        assert log["message"] == "sub message"
        assert log["detail"] == "value"
        assert log["severity"] == "WARN"

    def test_sub_logger_follows_later_parent_level_changes(self, console):
        logger = create_logger()
        sub = logger.create_sub_logger("db")

        logger.set_minimum_log_level("ERROR")
        sub.warn("skip")
        assert sub.minimum_log_level == "ERROR"
        assert console.warn.call_count == 0

        logger.set_minimum_log_level("DEBUG")
        sub.warn("include")
        assert console.warn.call_count == 1

    def test_sub_logger_sees_keys_set_after_creation(self, get_parsed_log):
        logger = create_logger()
        sub = logger.create_sub_logger("db")
        logger.set_key("detail", "late")

        sub.info("message")

        assert get_parsed_log()["detail"] == "late"


class TestTestMode:
    """Test cases for test mode detection and the plain formatter."""

    def test_uses_test_formatter_in_test_mode(self, get_log):
        logger = create_logger(test_mode=True)
        logger.info("something")

        assert get_log() == "INFO something"

    def test_test_formatter_includes_path(self, get_log):
        logger = create_logger(test_mode=True)
        logger.create_sub_logger("db").warn("slow")

        assert get_log("warn") == "WARN db slow"

    def test_detects_pytest(self):
        assert is_in_test_mode() is True
        assert create_logger(test_mode=None).test_mode is True

    @pytest.mark.parametrize("explicit", [True, False])
    def test_explicit_test_mode_wins(self, explicit):
        assert is_in_test_mode(explicit) is explicit

    @pytest.mark.parametrize(
        "value, expected",
        [("1", True), ("true", True), ("0", False), ("false", False), ("", False)],
    )
    def test_detects_ci_environment(self, monkeypatch, value, expected):
        monkeypatch.delitem(sys.modules, "pytest")
        for name in ("PYTEST_CURRENT_TEST", "TEST", "test", "ci"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("CI", value)

        assert is_in_test_mode() is expected


class TestRedaction:
    """Test cases for redaction of log lines."""

    def test_redacts_bearer_tokens(self, get_log):
        logger = create_logger(use_bearer_redactor=True)
        logger.info(f"Bearer {TEST_TOKEN}")

        assert_token_redacted(get_log())

    def test_redacts_bearer_tokens_without_bearer(self, get_log):
        logger = create_logger(use_bearer_redactor=True)

        # the redactor learns the token here
        logger.info(f"Bearer {TEST_TOKEN}")
        # this is the log we check
        logger.info(f'message "{TEST_TOKEN}"')

        assert_token_redacted(get_log(index=1))

    def test_redacts_bearer_tokens_in_json(self, get_log):
        logger = create_logger(use_bearer_redactor=True)
        logger.info(
            json.dumps({"headers": {"Authorization": f"Bearer {TEST_TOKEN}"}})
        )

        assert_token_redacted(get_log())

    def test_redacts_bearer_tokens_in_object(self, get_log):
        logger = create_logger(use_bearer_redactor=True)
        logger.info({"headers": {"Authorization": f"Bearer {TEST_TOKEN}"}})

        assert_token_redacted(get_log())

    def test_bearer_redactor_can_be_disabled(self, get_log):
        logger = create_logger(use_bearer_redactor=False)
        logger.info(f"Bearer {TEST_TOKEN}")

        assert TEST_TOKEN in get_log()

    def test_before_handler_clears_remembered_tokens(self):
        logger = create_logger(use_bearer_redactor=True)
        bearer = logger.redactors[-1]
        logger.info(f"Bearer {TEST_TOKEN}")
        assert TEST_TOKEN in bearer.tokens

        logger.events.emit(BEFORE_HANDLER, {}, {})

        assert bearer.tokens == []

    def test_uses_redactors(self, get_log):
        logger = create_logger(
            test_mode=True,
            redactors=[
                "string",
                re.compile("regex"),
                lambda text: text.replace("custom", "--removed--"),
            ],
        )
        logger.info("string regex custom test")

        assert get_log() == "INFO --redacted-- --redacted-- --removed-- test"

    def test_redactors_apply_to_payload(self, get_log, get_parsed_log):
        logger = create_logger(redactors=["hunter2"])
        logger.set_key("password", "hunter2")
        logger.info("login with hunter2")

        assert "hunter2" not in get_log()
        log = get_parsed_log()
        assert log["password"] == REDACTION
        assert log["message"] == f"login with {REDACTION}"

    def test_redacts_non_ascii_values(self, get_log, get_parsed_log):
        logger = create_logger(redactors=["pässwort", re.compile("José Núñez")])
        logger.set_key("password", "pässwort")
        logger.info("customer José Núñez", {"pw": "pässwort"})

        line = get_log()
        assert "pässwort" not in line
        assert "Núñez" not in line
        assert "\\u00" not in line
        log = get_parsed_log()
        assert log["password"] == REDACTION
        assert log["message"].startswith(f"customer {REDACTION} ")
        assert json.loads(log["message"][len(f"customer {REDACTION} ") :]) == {
            "pw": REDACTION
        }

    def test_bearer_redactor_runs_after_configured_redactors(self):
        logger = create_logger(redactors=["secret"])

        assert len(logger.redactors) == 2
        assert isinstance(logger.redactors[-1], BearerRedactor)
