"""
Quick tunnel session data structures.
"""

import binascii
import uuid
from base64 import b64decode, b64encode
from dataclasses import dataclass

from .exceptions import ConfigDecodeError


@dataclass(frozen=True)
class Credentials:
    """Credentials for one quick tunnel, as issued by the provisioning service."""

    account_tag: str
    tunnel_secret: bytes
    tunnel_id: uuid.UUID
    tunnel_name: str

    def to_dict(self) -> dict:
        """
        Serialize to the credentials document understood by cloudflared.

        Returns:
            Dict with AccountTag, TunnelSecret (base64), TunnelID and TunnelName
        """
        return {
            'AccountTag': self.account_tag,
            'TunnelSecret': b64encode(self.tunnel_secret).decode('ascii'),
            'TunnelID': str(self.tunnel_id),
            'TunnelName': self.tunnel_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Credentials':
        """
        Deserialize from a credentials document.

        Raises:
            ConfigDecodeError: If a field is missing or malformed
        """
        if not isinstance(data, dict):
            raise ConfigDecodeError("Credentials must be a JSON object")

        try:
            account_tag = data['AccountTag']
            secret = data['TunnelSecret']
            tunnel_id = data['TunnelID']
            tunnel_name = data['TunnelName']
        except KeyError as e:
            raise ConfigDecodeError(f"Credentials missing field {e}") from e

        return cls(
            account_tag=account_tag,
            tunnel_secret=decode_secret(secret),
            tunnel_id=parse_tunnel_id(tunnel_id),
            tunnel_name=tunnel_name,
        )


@dataclass(frozen=True)
class SessionConfig:
    """Durable state of one quick tunnel session."""

    url: str
    credentials: Credentials

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            'URL': self.url,
            'Credentials': self.credentials.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionConfig':
        """Deserialize from dictionary."""
        if not isinstance(data, dict):
            raise ConfigDecodeError("Session config must be a JSON object")

        try:
            url = data['URL']
            credentials = data['Credentials']
        except KeyError as e:
            raise ConfigDecodeError(f"Session config missing field {e}") from e

        if not isinstance(url, str) or not url:
            raise ConfigDecodeError("Session config URL must be a non-empty string")

        return cls(url=url, credentials=Credentials.from_dict(credentials))


def normalize_url(hostname: str) -> str:
    """
    Turn a tunnel hostname into a fully-qualified URL.

    Prepends https:// unless the value already carries a scheme.
    """
    if '://' in hostname:
        return hostname
    return f"https://{hostname}"


def parse_tunnel_id(value) -> uuid.UUID:
    """Parse a tunnel ID into a UUID."""
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise ConfigDecodeError(f"Invalid tunnel ID: {value!r}") from e


def decode_secret(value) -> bytes:
    """Decode a base64 tunnel secret."""
    if not isinstance(value, str):
        raise ConfigDecodeError("Tunnel secret must be a base64 string")
    try:
        return b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigDecodeError("Tunnel secret is not valid base64") from e
