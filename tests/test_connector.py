"""Tests for CloudflaredConnector."""

import json
import os
import stat
import subprocess
import sys
from unittest.mock import MagicMock, patch

import pytest
import yaml

from quicktunnel.connector import CloudflaredConnector
from quicktunnel.exceptions import ConnectorError, ConnectorSetupError


@pytest.fixture
def binary(tmp_path):
    path = tmp_path / "cloudflared"
    path.write_text("#!/bin/sh\n")
    return str(path)


def fake_process(exit_code=0):
    process = MagicMock()
    process.pid = 4242
    process.wait.return_value = exit_code
    return process


class TestConfigFiles:
    def test_writes_credentials_and_yaml(self, tmp_path, session_config):
        connector = CloudflaredConnector("http://localhost:8080", protocol="http2")

        config_path = connector.write_config_files(str(tmp_path), session_config)

        with open(config_path) as f:
            data = yaml.safe_load(f)
        tunnel_id = str(session_config.credentials.tunnel_id)
        assert data["tunnel"] == tunnel_id
        assert data["protocol"] == "http2"
        assert data["ingress"] == [{"service": "http://localhost:8080"}]

        with open(data["credentials-file"]) as f:
            assert json.load(f) == session_config.credentials.to_dict()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_credentials_file_is_owner_only(self, tmp_path, session_config):
        connector = CloudflaredConnector("http://localhost:8080")

        connector.write_config_files(str(tmp_path), session_config)

        credentials_path = tmp_path / f"{session_config.credentials.tunnel_id}.json"
        assert stat.S_IMODE(os.stat(credentials_path).st_mode) == 0o600

    def test_write_failure_is_setup_error(self, tmp_path, session_config):
        connector = CloudflaredConnector("http://localhost:8080")

        with pytest.raises(ConnectorSetupError):
            connector.write_config_files(str(tmp_path / "missing"), session_config)

    def test_default_protocol_is_quic(self, session_config):
        connector = CloudflaredConnector("http://localhost:8080")
        assert connector.create_tunnel_config(session_config, "/tmp/c.json")["protocol"] == "quic"


class TestRun:
    def test_runs_tunnel_by_id(self, binary, tmp_path, session_config):
        connector = CloudflaredConnector("http://localhost:8080", binary=binary, work_dir=str(tmp_path / "work"))

        with patch("quicktunnel.connector.subprocess.Popen", return_value=fake_process(0)) as popen:
            connector.run(session_config)

        command = popen.call_args[0][0]
        assert command[0] == binary
        assert command[1:3] == ["tunnel", "--config"]
        assert command[-2:] == ["run", str(session_config.credentials.tunnel_id)]
        assert os.path.exists(command[3])

    def test_nonzero_exit_is_connector_error(self, binary, session_config):
        connector = CloudflaredConnector("http://localhost:8080", binary=binary)

        with patch("quicktunnel.connector.subprocess.Popen", return_value=fake_process(1)):
            with pytest.raises(ConnectorError) as exc_info:
                connector.run(session_config)

        assert exc_info.value.exit_code == 1

    def test_spawn_failure_is_setup_error(self, binary, session_config):
        connector = CloudflaredConnector("http://localhost:8080", binary=binary)

        with patch("quicktunnel.connector.subprocess.Popen", side_effect=PermissionError("not executable")):
            with pytest.raises(ConnectorSetupError, match="not executable"):
                connector.run(session_config)

    def test_missing_binary(self, session_config):
        connector = CloudflaredConnector("http://localhost:8080")

        with patch("quicktunnel.connector.shutil.which", return_value=None):
            with patch("quicktunnel.connector.subprocess.Popen") as popen:
                with pytest.raises(ConnectorSetupError, match="not found on PATH"):
                    connector.run(session_config)

        popen.assert_not_called()

    def test_interrupt_terminates_child(self, binary, session_config):
        process = fake_process()
        process.wait.side_effect = [KeyboardInterrupt(), subprocess.TimeoutExpired("cloudflared", 10), 0]
        connector = CloudflaredConnector("http://localhost:8080", binary=binary)

        with patch("quicktunnel.connector.subprocess.Popen", return_value=process):
            with pytest.raises(KeyboardInterrupt):
                connector.run(session_config)

        process.terminate.assert_called_once()
        process.kill.assert_called_once()


class TestCheck:
    def test_explicit_binary(self, binary):
        assert CloudflaredConnector("http://localhost:8080", binary=binary).check() == binary

    def test_binary_from_path(self, binary):
        with patch("quicktunnel.connector.shutil.which", return_value=binary):
            assert CloudflaredConnector("http://localhost:8080").check() == binary

    def test_explicit_binary_missing(self, tmp_path):
        missing = str(tmp_path / "cloudflared")
        with pytest.raises(ConnectorSetupError) as exc_info:
            CloudflaredConnector("http://localhost:8080", binary=missing).check()

        assert str(exc_info.value) == f"cloudflared binary not found at {missing}"

    def test_setup_error_is_connector_error(self):
        assert issubclass(ConnectorSetupError, ConnectorError)
