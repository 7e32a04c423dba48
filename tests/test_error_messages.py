"""Tests for operator-facing error messages."""

import pytest

from quicktunnel.error_messages import ERROR_MESSAGES, error_key_for, get_user_friendly_error
from quicktunnel.exceptions import (
    ConfigDecodeError,
    ConnectorError,
    ConnectorSetupError,
    NotificationError,
    PersistenceError,
    ProvisioningError,
    RestartRequiredError,
    SessionLockedError,
)


@pytest.mark.parametrize("error, key", [
    (ProvisioningError("slow", kind="timeout"), "provisioning_timeout"),
    (ProvisioningError("bad id", kind="validation"), "provisioning_invalid"),
    (ProvisioningError("refused", kind="network"), "provisioning_failed"),
    (ConfigDecodeError("garbage"), "config_invalid"),
    (SessionLockedError("busy"), "config_locked"),
    (PersistenceError("denied"), "permission_denied"),
    (NotificationError("gave up"), "callback_failed"),
    (ConnectorError("exit 1"), "connector_failed"),
    (ConnectorSetupError("cloudflared binary not found on PATH"), "connector_setup_failed"),
    (RestartRequiredError("restart"), "restart_required"),
])
def test_error_key_for(error, key):
    assert error_key_for(error) == key
    assert key in ERROR_MESSAGES


def test_unknown_error_gets_generic_message():
    info = get_user_friendly_error(error_key_for(ValueError("x")))
    assert info["message"] == "An unexpected error occurred"
    assert set(info) == {"message", "guidance"}


def test_every_message_has_guidance():
    for key in ERROR_MESSAGES:
        assert set(get_user_friendly_error(key)) == {"message", "guidance"}
