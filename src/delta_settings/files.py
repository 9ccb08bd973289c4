"""File operations shared by unified stores and group files.

Every call opens, finishes and closes its file; nothing holds a handle
between calls.
"""

import contextlib
import tempfile
from pathlib import Path

from delta_settings.exceptions import SettingsIOError
from delta_settings.logger import get_logger

logger = get_logger(__name__)

_TMP_PREFIX = "."
_TMP_SUFFIX = ".tmp"


def read_file(path: Path) -> bytes | None:
    """Read a whole file.

    Returns:
        The file contents, or None when the file does not exist

    Raises:
        SettingsIOError: If the file exists but cannot be read

    """
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        msg = f"cannot read file: {e}"
        raise SettingsIOError(msg, str(path)) from e


def write_file(path: Path, payload: bytes) -> None:
    """Write ``payload`` to ``path`` atomically.

    The bytes go to a temporary file in the same directory which then
    replaces ``path``, so a failed write leaves the old file intact.

    Raises:
        SettingsIOError: If the directory or file cannot be written

    """
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f"{_TMP_PREFIX}{path.name}.",
            suffix=_TMP_SUFFIX,
            delete=False,
        ) as tmp_file:
            tmp_path = Path(tmp_file.name)
            tmp_file.write(payload)
            tmp_file.flush()
        tmp_path.replace(path)
    except OSError as e:
        if tmp_path is not None:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
        msg = f"cannot write file: {e}"
        raise SettingsIOError(msg, str(path)) from e

    logger.debug("Wrote %d bytes to %s", len(payload), path)


def remove_file(path: Path) -> bool:
    """Delete ``path`` if it exists.

    Returns:
        True if a file was removed

    Raises:
        SettingsIOError: If the file exists but cannot be removed

    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        msg = f"cannot remove file: {e}"
        raise SettingsIOError(msg, str(path)) from e

    logger.debug("Removed %s", path)
    return True
