"""
Persistence of the quick tunnel session config on local storage.
"""

import json
import logging
import os
import stat
import tempfile
from contextlib import contextmanager
from typing import Iterator, Optional

try:
    import fcntl
except ImportError:  # Windows
    fcntl = None

from .config import SessionConfig
from .exceptions import ConfigDecodeError, PersistenceError, SessionLockedError
from .security import is_private_file


class ConfigStore:
    """Reads, writes and deletes the session config file at a fixed path."""

    def __init__(self, path: str, logger: Optional[logging.Logger] = None):
        """
        Initialize config store.

        Args:
            path: Location of the session config file
            logger: Logger to report on, defaults to this module's logger
        """
        self.path = os.path.abspath(path)
        self.lock_path = f"{self.path}.lock"
        self.logger = logger or logging.getLogger(__name__)

    def exists(self) -> bool:
        """
        Check whether a session config file is present.

        Returns:
            True if a regular file exists at the path

        Raises:
            PersistenceError: If the path cannot be inspected for a reason other than absence
        """
        try:
            st = os.stat(self.path)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            raise PersistenceError(f"Cannot access session config {self.path}: {e}") from e

        return stat.S_ISREG(st.st_mode)

    def load(self) -> SessionConfig:
        """
        Read and decode the stored session config.

        Returns:
            The stored SessionConfig

        Raises:
            PersistenceError: If the file cannot be read
            ConfigDecodeError: If the file content is malformed
        """
        try:
            with open(self.path, 'rb') as f:
                raw = f.read()
            private = is_private_file(self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to read session config {self.path}: {e}") from e

        if not private:
            self.logger.warning(f"Session config {self.path} is readable by other users")

        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigDecodeError(f"Session config {self.path} is not valid JSON: {e}") from e

        return SessionConfig.from_dict(data)

    def save(self, config: SessionConfig):
        """
        Write the session config, replacing any previous content.

        The document is written to an owner-only temp file in the same
        directory and then renamed over the target.

        Raises:
            PersistenceError: If the file cannot be written
        """
        document = json.dumps(config.to_dict(), indent=1)
        directory = os.path.dirname(self.path)
        temp_path = None

        try:
            fd, temp_path = tempfile.mkstemp(
                prefix=f".{os.path.basename(self.path)}.",
                suffix='.tmp',
                dir=directory
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(document)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, self.path)
            temp_path = None

        except OSError as e:
            raise PersistenceError(f"Failed to write session config {self.path}: {e}") from e
        finally:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)

        self.logger.info(f"Wrote session config to {self.path}")

    def delete(self):
        """
        Remove the stored session config.

        Raises:
            PersistenceError: If the file cannot be removed
        """
        try:
            os.remove(self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to delete session config {self.path}: {e}") from e

        self.logger.info(f"Deleted session config {self.path}")

    @contextmanager
    def lock(self, blocking: bool = False) -> Iterator[None]:
        """
        Hold an exclusive advisory lock on the session config.

        The lock file is removed on release. A process that was waiting on
        a removed lock file finds it replaced and locks the new one instead.

        Args:
            blocking: Wait for another holder instead of failing

        Raises:
            SessionLockedError: If another process holds the lock and blocking is False
            PersistenceError: If the lock file cannot be opened or locked
        """
        if fcntl is None:
            yield
            return

        lock_file = self._acquire(blocking)
        try:
            yield
        finally:
            try:
                os.remove(self.lock_path)
            except OSError as e:
                self.logger.warning(f"Failed to remove lock file {self.lock_path}: {e}")
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
            lock_file.close()

    def _acquire(self, blocking: bool):
        flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB

        while True:
            try:
                lock_file = open(self.lock_path, 'a')
            except OSError as e:
                raise PersistenceError(f"Failed to open lock file {self.lock_path}: {e}") from e

            try:
                fcntl.flock(lock_file.fileno(), flags)
            except BlockingIOError as e:
                lock_file.close()
                raise SessionLockedError(
                    f"Session config {self.path} is in use by another process"
                ) from e
            except OSError as e:
                lock_file.close()
                raise PersistenceError(f"Failed to lock {self.lock_path}: {e}") from e

            # the previous holder may have removed the file while we waited
            try:
                current = os.stat(self.lock_path)
            except FileNotFoundError:
                current = None
            except OSError as e:
                lock_file.close()
                raise PersistenceError(f"Failed to lock {self.lock_path}: {e}") from e

            if current is not None and os.path.samestat(os.fstat(lock_file.fileno()), current):
                return lock_file

            lock_file.close()
