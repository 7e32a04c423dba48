"""
Tunnel connectors - the component that actually runs a tunnel from credentials.
"""

import json
import logging
import os
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import yaml

from .config import SessionConfig
from .exceptions import ConnectorError, ConnectorSetupError
from .security import write_private_file


class TunnelConnector(ABC):
    """Runs a tunnel for a session config, blocking until it ends."""

    @abstractmethod
    def run(self, config: SessionConfig):
        """
        Start the tunnel and block until it stops.

        Raises:
            ConnectorError: If the tunnel fails to start or ends with an error
        """


class CloudflaredConnector(TunnelConnector):
    """Runs the tunnel through a cloudflared subprocess."""

    def __init__(
        self,
        local_url: str,
        binary: Optional[str] = None,
        protocol: str = 'quic',
        work_dir: Optional[str] = None,
        extra_args: Sequence[str] = (),
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize cloudflared connector.

        Args:
            local_url: Local service the tunnel forwards to
            binary: Path to cloudflared, looked up on PATH if omitted
            protocol: Edge transport protocol
            work_dir: Directory for generated config files, a temp dir if omitted
            extra_args: Additional arguments placed before 'run'
            logger: Logger to report on
        """
        self.local_url = local_url
        self.binary = binary
        self.protocol = protocol
        self.work_dir = work_dir
        self.extra_args = list(extra_args)
        self.logger = logger or logging.getLogger(__name__)

    def check(self) -> str:
        """
        Verify the connector can run on this host before any session work starts.

        Returns:
            Path of the cloudflared binary

        Raises:
            ConnectorSetupError: If cloudflared cannot be found
        """
        binary_path = self.binary or shutil.which('cloudflared')
        if not binary_path or not os.path.exists(binary_path):
            raise ConnectorSetupError(
                f"cloudflared binary not found{f' at {self.binary}' if self.binary else ' on PATH'}"
            )
        return binary_path

    def run(self, config: SessionConfig):
        binary_path = self.check()

        if self.work_dir:
            try:
                os.makedirs(self.work_dir, exist_ok=True)
            except OSError as e:
                raise ConnectorSetupError(f"Failed to create {self.work_dir}: {e}") from e
            self._run_in(self.work_dir, binary_path, config)
        else:
            with tempfile.TemporaryDirectory(prefix='quicktunnel-') as work_dir:
                self._run_in(work_dir, binary_path, config)

    def build_command(self, binary_path: str, config_path: str, config: SessionConfig) -> List[str]:
        """Command line running the tunnel for this session."""
        return [
            binary_path, 'tunnel', '--config', config_path,
            *self.extra_args,
            'run', str(config.credentials.tunnel_id),
        ]

    def create_tunnel_config(self, config: SessionConfig, credentials_path: str) -> dict:
        """
        Create cloudflared configuration dict.

        Args:
            config: Session the tunnel runs for
            credentials_path: Credentials file written for cloudflared

        Returns:
            Configuration dict with a catch-all ingress rule
        """
        return {
            'tunnel': str(config.credentials.tunnel_id),
            'credentials-file': credentials_path,
            'protocol': self.protocol,
            'ingress': [
                {'service': self.local_url},
            ],
        }

    def write_config_files(self, work_dir: str, config: SessionConfig) -> str:
        """
        Write the credentials and YAML config files for cloudflared.

        Returns:
            Path of the YAML config file
        """
        tunnel_id = str(config.credentials.tunnel_id)
        credentials_path = os.path.join(work_dir, f'{tunnel_id}.json')
        config_path = os.path.join(work_dir, f'{tunnel_id}.yml')

        try:
            write_private_file(credentials_path, json.dumps(config.credentials.to_dict()))

            with open(config_path, 'w') as f:
                yaml.dump(self.create_tunnel_config(config, credentials_path), f, default_flow_style=False)
        except OSError as e:
            raise ConnectorSetupError(f"Failed to write cloudflared config: {e}") from e

        self.logger.debug(f"Wrote tunnel config to {config_path}")
        return config_path

    def _run_in(self, work_dir: str, binary_path: str, config: SessionConfig):
        config_path = self.write_config_files(work_dir, config)
        command = self.build_command(binary_path, config_path, config)

        try:
            process = subprocess.Popen(command, stdin=subprocess.DEVNULL)
        except OSError as e:
            raise ConnectorSetupError(f"Failed to start cloudflared: {e}") from e

        self.logger.info(f"Started cloudflared (PID: {process.pid}) for {config.url}")

        try:
            exit_code = process.wait()
        except KeyboardInterrupt:
            self.logger.info("Interrupted, stopping cloudflared")
            process.terminate()
            try:
                process.wait(timeout=10)
            except subprocess.TimeoutExpired:
                self.logger.warning("cloudflared did not exit gracefully, force-killing")
                process.kill()
                process.wait()
            raise

        if exit_code != 0:
            raise ConnectorError(f"cloudflared exited with code {exit_code}", exit_code=exit_code)

        self.logger.info("cloudflared exited cleanly")
