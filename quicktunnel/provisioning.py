"""
Requests new quick tunnels from the provisioning service.
"""

import json
import logging
import threading
import uuid
from typing import Optional

import requests

from .banner import ascii_box
from .config import Credentials, SessionConfig, decode_secret, normalize_url
from .exceptions import ConfigDecodeError, ProvisioningError
from .settings import HTTP_TIMEOUT

DISCLAIMER = (
    "Thank you for trying Cloudflare Tunnel. Doing so, without a Cloudflare account, is a quick way to "
    "experiment and try it out. However, be aware that these account-less Tunnels have no uptime guarantee. "
    "If you intend to use Tunnels in production you should use a pre-created named tunnel by following: "
    "https://developers.cloudflare.com/cloudflare-one/connections/connect-apps"
)

RESULT_FIELDS = ('id', 'name', 'hostname', 'account_tag', 'secret')


class ProvisioningClient:
    """Handles quick tunnel requests against the provisioning service."""

    def __init__(
        self,
        service_url: str,
        timeout: float = HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize provisioning client.

        Args:
            service_url: Base URL of the quick tunnel service
            timeout: Seconds allowed for connecting, for each read, and for the whole exchange
            session: HTTP session to use, a new one is created if omitted
            logger: Logger to report on
        """
        self.service_url = service_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    def request_tunnel(self) -> SessionConfig:
        """
        Request a new quick tunnel.

        Returns:
            SessionConfig with the normalized tunnel URL and fresh credentials

        Raises:
            ProvisioningError: If the request, decoding or validation fails
        """
        self.logger.info(DISCLAIMER)
        self.logger.info(f"Requesting new quick Tunnel on {self.service_url}...")

        body = self._post_tunnel()
        data = self._decode(body)

        result = data['result']
        try:
            tunnel_id = uuid.UUID(str(result['id']))
        except ValueError as e:
            raise ProvisioningError(
                f"failed to parse quick Tunnel ID: {result['id']!r}", kind='validation'
            ) from e

        try:
            secret = decode_secret(result['secret'])
        except ConfigDecodeError as e:
            raise ProvisioningError(f"failed to unmarshal quick Tunnel: {e}", kind='decode') from e

        credentials = Credentials(
            account_tag=result['account_tag'],
            tunnel_secret=secret,
            tunnel_id=tunnel_id,
            tunnel_name=result['name'],
        )
        url = normalize_url(result['hostname'])

        for line in ascii_box([
            "Your quick Tunnel has been created! Visit it at (it may take some time to be reachable):",
            url,
        ], 2):
            self.logger.info(line)

        return SessionConfig(url=url, credentials=credentials)

    def _post_tunnel(self) -> bytes:
        """
        POST to the tunnel endpoint and read the whole body within the deadline.

        The exchange runs on a daemon thread so a server trickling its body
        cannot hold the caller past the deadline.

        Returns:
            Raw response body
        """
        outcome = {}
        done = threading.Event()
        cancelled = threading.Event()

        worker = threading.Thread(
            target=self._fetch, args=(outcome, done, cancelled), daemon=True
        )
        worker.start()

        if not done.wait(self.timeout):
            cancelled.set()
            raise ProvisioningError(
                f"failed to request quick Tunnel: no complete response within {self.timeout}s",
                kind='timeout'
            )

        if 'error' in outcome:
            raise outcome['error']
        return outcome['body']

    def _fetch(self, outcome: dict, done: threading.Event, cancelled: threading.Event):
        """Worker side of _post_tunnel, storing the body or a ProvisioningError in outcome."""
        try:
            outcome['body'] = self._read_response(cancelled)
        except ProvisioningError as e:
            outcome['error'] = e
        except Exception as e:
            outcome['error'] = ProvisioningError(f"failed to request quick Tunnel: {e}", kind='network')
        finally:
            done.set()

    def _read_response(self, cancelled: threading.Event) -> bytes:
        try:
            response = self.session.post(
                f"{self.service_url}/tunnel",
                headers={'Content-Type': 'application/json'},
                timeout=(self.timeout, self.timeout),
                stream=True
            )
        except requests.exceptions.Timeout as e:
            raise ProvisioningError(f"failed to request quick Tunnel: {e}", kind='timeout') from e
        except requests.RequestException as e:
            raise ProvisioningError(f"failed to request quick Tunnel: {e}", kind='network') from e

        try:
            chunks = []
            for chunk in response.iter_content(chunk_size=1024):
                # caller already gave up
                if cancelled.is_set():
                    raise ProvisioningError("quick Tunnel response abandoned", kind='timeout')
                chunks.append(chunk)
            return b''.join(chunks)
        except requests.exceptions.Timeout as e:
            raise ProvisioningError(f"failed to read quick Tunnel response: {e}", kind='timeout') from e
        except requests.RequestException as e:
            raise ProvisioningError(f"failed to read quick Tunnel response: {e}", kind='network') from e
        finally:
            response.close()

    def _decode(self, body: bytes) -> dict:
        """
        Decode the service response and check its shape.

        Returns:
            Response document with a complete result object
        """
        try:
            data = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ProvisioningError(f"failed to unmarshal quick Tunnel: {e}", kind='decode') from e

        if not isinstance(data, dict):
            raise ProvisioningError("failed to unmarshal quick Tunnel: expected a JSON object", kind='decode')

        if data.get('success') is False:
            errors = data.get('errors') or []
            messages = [
                str(err.get('message', err)) if isinstance(err, dict) else str(err)
                for err in errors
            ]
            detail = '; '.join(messages) or 'no error details'
            raise ProvisioningError(f"quick Tunnel request was rejected: {detail}", kind='rejected')

        result = data.get('result')
        if not isinstance(result, dict):
            raise ProvisioningError("failed to unmarshal quick Tunnel: missing result", kind='decode')

        missing = [field for field in RESULT_FIELDS if field not in result]
        if missing:
            raise ProvisioningError(
                f"failed to unmarshal quick Tunnel: result missing {', '.join(missing)}",
                kind='decode'
            )

        if not isinstance(result['hostname'], str) or not result['hostname']:
            raise ProvisioningError("failed to unmarshal quick Tunnel: empty hostname", kind='decode')

        return data
