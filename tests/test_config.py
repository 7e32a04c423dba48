"""Tests for the session data model."""

import uuid

import pytest

from quicktunnel.config import Credentials, SessionConfig, normalize_url
from quicktunnel.exceptions import ConfigDecodeError


class TestNormalizeUrl:
    def test_prepends_https(self):
        assert normalize_url("abc.trycloudflare.com") == "https://abc.trycloudflare.com"

    def test_keeps_https(self):
        assert normalize_url("https://abc.trycloudflare.com") == "https://abc.trycloudflare.com"

    def test_keeps_other_scheme(self):
        assert normalize_url("http://abc.example") == "http://abc.example"


class TestSessionConfigDocument:
    def test_document_keys(self, session_config):
        data = session_config.to_dict()
        assert set(data) == {"URL", "Credentials"}
        assert set(data["Credentials"]) == {"AccountTag", "TunnelSecret", "TunnelID", "TunnelName"}
        assert data["Credentials"]["TunnelID"] == str(session_config.credentials.tunnel_id)

    def test_from_dict_restores_equal_config(self, session_config):
        assert SessionConfig.from_dict(session_config.to_dict()) == session_config

    def test_config_is_immutable(self, session_config):
        with pytest.raises(AttributeError):
            session_config.url = "https://other"

    def test_missing_credentials(self):
        with pytest.raises(ConfigDecodeError, match="Credentials"):
            SessionConfig.from_dict({"URL": "https://x"})

    def test_not_an_object(self):
        with pytest.raises(ConfigDecodeError):
            SessionConfig.from_dict(["URL"])

    def test_bad_tunnel_id(self, session_config):
        data = session_config.to_dict()
        data["Credentials"]["TunnelID"] = "not-a-uuid"
        with pytest.raises(ConfigDecodeError, match="tunnel ID"):
            SessionConfig.from_dict(data)

    def test_bad_secret(self, session_config):
        data = session_config.to_dict()
        data["Credentials"]["TunnelSecret"] = "%%%"
        with pytest.raises(ConfigDecodeError, match="base64"):
            SessionConfig.from_dict(data)

    def test_credentials_types(self, session_config):
        creds = Credentials.from_dict(session_config.credentials.to_dict())
        assert isinstance(creds.tunnel_id, uuid.UUID)
        assert isinstance(creds.tunnel_secret, bytes)
