"""
tests.test_logging

Structured log output: deployment stamps and credential masking.
"""

from __future__ import annotations

import json
import logging

from vault_console.observability.logging import (
    REDACTED,
    configure_logging,
    get_logger,
    redact_credentials,
    stamp_deployment,
)
from vault_console.settings import Settings


def test_credentials_are_masked_and_other_fields_kept() -> None:
    event = redact_credentials(
        None,
        "info",
        {"event": "login", "token": "eyJhbGciOi", "password": "hunter2", "role": "dev", "authorization": None},
    )
    assert event["token"] == REDACTED
    assert event["password"] == REDACTED
    assert event["role"] == "dev"
    # Nothing to hide in an empty value.
    assert event["authorization"] is None


def test_deployment_stamp_does_not_override_explicit_fields() -> None:
    stamp = stamp_deployment(service="vault-console", env="prod")
    assert stamp(None, "info", {"event": "x"}) == {"event": "x", "service": "vault-console", "env": "prod"}
    assert stamp(None, "info", {"event": "x", "env": "test"})["env"] == "test"


def test_configured_output_is_json_stamped_and_masked(caplog) -> None:
    configure_logging(Settings(env="test", service_name="vault-console-test", log_level="INFO"))

    with caplog.at_level(logging.INFO):
        get_logger("tests.logging").info("session_restored", token="eyJhbGciOi", role="dev")

    line = json.loads(caplog.records[-1].getMessage())
    assert line["event"] == "session_restored"
    assert line["service"] == "vault-console-test"
    assert line["env"] == "test"
    assert line["token"] == REDACTED
    assert line["role"] == "dev"
