"""
Owner-only file handling for tunnel secrets.
"""

import os
import stat

PRIVATE_MODE = stat.S_IRUSR | stat.S_IWUSR


def write_private_file(path: str, content: str):
    """
    Write text to a file only its owner can read, replacing any previous content.

    The file is created with mode 0600, so the secret is never briefly
    exposed; a pre-existing file is narrowed to 0600 as well.

    Raises:
        OSError: If the file cannot be created or written
    """
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PRIVATE_MODE)
    with os.fdopen(fd, 'w', encoding='utf-8') as f:
        if hasattr(os, 'fchmod'):
            os.fchmod(f.fileno(), PRIVATE_MODE)
        f.write(content)


def is_private_file(path: str) -> bool:
    """
    Check that no one but the owner can access a file.

    Always True on Windows, where POSIX mode bits do not describe access.

    Raises:
        OSError: If the file cannot be inspected
    """
    if os.name == 'nt':
        return True
    return not os.stat(path).st_mode & (stat.S_IRWXG | stat.S_IRWXO)
