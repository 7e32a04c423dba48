"""
Quick tunnel session lifecycle - reuse or provision, announce, persist, connect.
"""

import logging
from typing import Optional

from .callback import CallbackNotifier
from .config import SessionConfig
from .connector import TunnelConnector
from .exceptions import ConnectorError, ConnectorSetupError, RestartRequiredError
from .provisioning import ProvisioningClient
from .store import ConfigStore


class SessionOrchestrator:
    """Runs one pass of the quick tunnel session lifecycle."""

    def __init__(
        self,
        store: ConfigStore,
        provisioner: ProvisioningClient,
        notifier: CallbackNotifier,
        connector: TunnelConnector,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.provisioner = provisioner
        self.notifier = notifier
        self.connector = connector
        self.logger = logger or logging.getLogger(__name__)

    def run(self) -> SessionConfig:
        """
        Start the tunnel from stored or freshly provisioned credentials.

        A new session is provisioned, announced to the callback and only then
        saved. When a stored session fails to connect, its file is deleted so
        the next run provisions a new tunnel. Local setup failures say nothing
        about the tunnel and leave the file in place.

        Returns:
            The session config the connector ran with

        Raises:
            ProvisioningError: If a new tunnel cannot be requested
            NotificationError: If the callback never acknowledged the URL
            PersistenceError: If the config file cannot be read, written or deleted
            ConnectorSetupError: If the connector cannot be prepared, the stored file is kept
            ConnectorError: If a freshly provisioned tunnel fails to run
            RestartRequiredError: If a stored tunnel failed to run and was discarded
        """
        self.logger.info(f"Using config file: {self.store.path}")

        with self.store.lock():
            existing = self.store.exists()
            if existing:
                config = self.store.load()
            else:
                config = self._provision()

        self.logger.info(f"Using: {config.url}")

        try:
            self.connector.run(config)
        except ConnectorSetupError:
            raise
        except ConnectorError as e:
            if not existing:
                raise

            self.logger.warning(f"Stored tunnel failed to start ({e}), removing {self.store.path}")
            with self.store.lock(blocking=True):
                if self.store.exists():
                    self.store.delete()

            # the connector holds process-wide resources, so a fresh tunnel
            # needs a new process rather than a second attempt here
            raise RestartRequiredError("Failed to start server. Restart to create new tunnel.") from e

        return config

    def _provision(self) -> SessionConfig:
        config = self.provisioner.request_tunnel()
        self.notifier.notify(config.url)
        self.store.save(config)
        return config
