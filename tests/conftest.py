import json
import logging
import uuid
from base64 import b64encode
from unittest.mock import MagicMock

import pytest

from quicktunnel.config import Credentials, SessionConfig

TUNNEL_ID = uuid.UUID("5f1c2a8e-9a43-4e8e-b1d7-3c2f6c9d0a11")
SECRET = b"\x01\x02super-secret\xff"


@pytest.fixture
def session_config():
    """A valid session config as produced by provisioning."""
    return SessionConfig(
        url="https://abc.trycloudflare.com",
        credentials=Credentials(
            account_tag="acc-tag",
            tunnel_secret=SECRET,
            tunnel_id=TUNNEL_ID,
            tunnel_name="qt-abc",
        ),
    )


@pytest.fixture
def tunnel_response():
    """Factory for provisioning service documents."""

    def _build(**overrides):
        result = {
            "id": str(TUNNEL_ID),
            "name": "qt-abc",
            "hostname": "abc.trycloudflare.com",
            "account_tag": "acc-tag",
            "secret": b64encode(SECRET).decode("ascii"),
        }
        result.update(overrides)
        return {"success": True, "result": result, "errors": []}

    return _build


@pytest.fixture
def http_response():
    """Factory for fake requests responses."""

    def _build(status_code=200, body=b""):
        response = MagicMock()
        response.status_code = status_code
        if isinstance(body, dict):
            body = json.dumps(body).encode("utf-8")
        response.iter_content.return_value = [body]
        return response

    return _build


@pytest.fixture
def quiet_logger():
    logger = logging.getLogger("quicktunnel.tests")
    logger.setLevel(logging.DEBUG)
    return logger
