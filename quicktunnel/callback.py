"""
Announces the public tunnel URL to a local callback endpoint.
"""

import logging
import threading
import time
from typing import Callable, Optional

import requests
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    stop_never,
    stop_when_event_set,
    wait_exponential,
    wait_random,
)

from .exceptions import NotificationError
from .settings import DEFAULT_CALLBACK_MAX_ELAPSED, HTTP_TIMEOUT


class CallbackNotifier:
    """Posts the tunnel URL to the local server until it answers with 2xx."""

    def __init__(
        self,
        local_url: str,
        callback_path: str,
        max_elapsed: Optional[float] = DEFAULT_CALLBACK_MAX_ELAPSED,
        max_attempts: Optional[int] = None,
        initial_interval: float = 0.5,
        multiplier: float = 1.5,
        max_interval: float = 60,
        jitter: float = 0.5,
        cancel_event: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], None]] = None,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize callback notifier.

        Args:
            local_url: Base URL of the local server
            callback_path: Path on the local server receiving the tunnel URL
            max_elapsed: Seconds after which retrying stops, None retries forever
            max_attempts: Maximum number of POSTs, None for no limit
            initial_interval: Delay after the first failure
            multiplier: Growth factor of the delay per failure
            max_interval: Cap on a single delay (before jitter)
            jitter: Upper bound of random seconds added to each delay
            cancel_event: Event that aborts retrying when set
            sleep: Sleep function, defaults to waiting on cancel_event or time.sleep
            session: HTTP session to use
            timeout: Seconds allowed per request
            logger: Logger to report on
        """
        self.callback_url = f"{local_url.rstrip('/')}/{callback_path.lstrip('/')}"
        self.max_elapsed = max_elapsed
        self.max_attempts = max_attempts
        self.initial_interval = initial_interval
        self.multiplier = multiplier
        self.max_interval = max_interval
        self.jitter = jitter
        self.cancel_event = cancel_event
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        if sleep is not None:
            self._sleep = sleep
        elif cancel_event is not None:
            self._sleep = cancel_event.wait
        else:
            self._sleep = time.sleep

    def notify(self, tunnel_url: str):
        """
        Tell the local server about the tunnel URL, retrying with backoff.

        Args:
            tunnel_url: Public tunnel URL

        Raises:
            NotificationError: If retrying stopped before the server accepted the URL
        """
        self.logger.info(f"Notifying {self.callback_url} of changed tunnel")

        retrying = Retrying(
            stop=self._stop_condition(),
            wait=self._wait_strategy(),
            retry=retry_if_exception_type((requests.RequestException, NotificationError)),
            sleep=self._sleep,
            before_sleep=self._log_retry,
        )

        try:
            for attempt in retrying:
                with attempt:
                    self._post(tunnel_url)
        except RetryError as e:
            last = e.last_attempt
            raise NotificationError(
                f"Callback {self.callback_url} not acknowledged after {last.attempt_number} attempts: "
                f"{last.exception()}",
                attempts=last.attempt_number
            ) from last.exception()

        self.logger.info(f"Callback {self.callback_url} acknowledged tunnel URL")

    def _post(self, tunnel_url: str):
        """Single callback attempt."""
        response = self.session.post(
            self.callback_url,
            data=tunnel_url.encode('utf-8'),
            headers={'Content-Type': 'text/plain'},
            timeout=self.timeout
        )
        try:
            if not 200 <= response.status_code <= 299:
                raise NotificationError(f"Callback error: status {response.status_code}")
        finally:
            response.close()

    def _stop_condition(self):
        stop = stop_never
        if self.max_elapsed is not None:
            stop = stop | stop_after_delay(self.max_elapsed)
        if self.max_attempts is not None:
            stop = stop | stop_after_attempt(self.max_attempts)
        if self.cancel_event is not None:
            stop = stop | stop_when_event_set(self.cancel_event)
        return stop

    def _wait_strategy(self):
        return (
            wait_exponential(
                multiplier=self.initial_interval,
                exp_base=self.multiplier,
                max=self.max_interval
            )
            + wait_random(0, self.jitter)
        )

    def _log_retry(self, retry_state: RetryCallState):
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        self.logger.warning(
            f"Callback attempt {retry_state.attempt_number} failed "
            f"({retry_state.outcome.exception()}), retrying in {delay:.1f}s"
        )
