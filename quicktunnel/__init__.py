"""
Quick tunnel keeper.

This package provisions ephemeral Cloudflare quick tunnels, keeps their
credentials on disk between runs, tells a local server the public URL and
starts the tunnel connection.
"""

__version__ = '0.1.0'

from .callback import CallbackNotifier
from .config import Credentials, SessionConfig
from .connector import CloudflaredConnector, TunnelConnector
from .orchestrator import SessionOrchestrator
from .provisioning import ProvisioningClient
from .store import ConfigStore
from .exceptions import (
    TunnelError,
    ProvisioningError,
    PersistenceError,
    ConfigDecodeError,
    SessionLockedError,
    NotificationError,
    ConnectorError,
    ConnectorSetupError,
    RestartRequiredError,
)

__all__ = [
    'CallbackNotifier',
    'Credentials',
    'SessionConfig',
    'CloudflaredConnector',
    'TunnelConnector',
    'SessionOrchestrator',
    'ProvisioningClient',
    'ConfigStore',
    'TunnelError',
    'ProvisioningError',
    'PersistenceError',
    'ConfigDecodeError',
    'SessionLockedError',
    'NotificationError',
    'ConnectorError',
    'ConnectorSetupError',
    'RestartRequiredError',
]
