from __future__ import annotations

import os
import stat
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from summarize_repo.config import EXCLUDED_DIRECTORIES
from summarize_repo.exceptions import FileReadError
from summarize_repo.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator

_BYTE_UNITS = ("KB", "MB", "GB", "TB")


def canonical_key(path: Path | str) -> str:
    """Return the canonical store/index key of a path: its absolute, resolved form."""
    return str(Path(path).expanduser().resolve())


def is_hidden(name: str) -> bool:
    """Check if a file-system entry name denotes a hidden (dot) file."""
    return name.startswith(".")


def is_regular_file(path: Path) -> bool:
    """Check if a file is regular.

    Args:
        path (Path): path to test.

    Returns:
        bool: True if the file is regular, False otherwise.
    """
    try:
        st = path.stat()
        return stat.S_ISREG(st.st_mode)
    except OSError:
        return False


def sniff_text_utf8(path: Path, nbytes: int = 4096) -> bool:
    """Check if path point to a utf-8 encoded text file.

    Args:
        path (Path): path to test.
        nbytes (int, optional): number of bytes to read for testing. Defaults to 4096.

    Returns:
        bool: True if the file is utf-8 encoded text, False otherwise.
    """
    try:
        if not is_regular_file(path):
            return False
        with path.open("rb") as f:
            chunk = f.read(nbytes)
        chunk.decode("utf-8")
    except (OSError, UnicodeDecodeError):
        return False
    else:
        return True


def read_text(path: Path, *, keep_newlines: bool = False) -> str:
    """Read a whole file as UTF-8 text.

    Args:
        path (Path): the file to read
        keep_newlines (bool): return line endings as stored (CRLF stays CRLF)
            instead of translating them to LF

    Raises:
        FileReadError: if the file is missing, unreadable or not valid UTF-8

    Returns:
        str: the file content
    """
    try:
        with path.open(encoding="utf-8", newline="" if keep_newlines else None) as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(name=path.name) from e


def file_size(path: Path) -> int:
    """Return the size of ``path`` in bytes, 0 when it cannot be stat'ed."""
    try:
        return path.stat().st_size
    except OSError:
        return 0


def format_byte_count(count: int) -> str:
    """Format a byte count with decimal (1000 based) file-size units.

    Examples: ``0 bytes``, ``1 byte``, ``999 bytes``, ``1 KB``, ``12 KB``,
    ``1.5 MB``.

    Args:
        count (int): number of bytes

    Returns:
        str: the human readable size
    """
    if count < 1000:  # noqa: PLR2004
        return f"{count} byte" if count == 1 else f"{count} bytes"
    value = float(count)
    unit = _BYTE_UNITS[0]
    for unit in _BYTE_UNITS:  # noqa: B007
        value /= 1000
        if value < 1000:  # noqa: PLR2004
            break
    if unit == "KB":
        return f"{round(value)} KB"
    return f"{value:.1f} {unit}"


def make_meta_string(path: Path) -> str:
    """Create a metadata stub used in place of binary contents."""
    return f"size={file_size(path)} bytes"


def now_iso() -> str:
    """Return the current date and time in ISO 8601 format with timezone.

    Returns:
        str: the current date and time in ISO 8601 format with timezone
    """
    return datetime.now(UTC).astimezone().isoformat(timespec="seconds")


def now_stamp() -> str:
    """Return a file-name friendly timestamp (``YYYY-mm-dd-HHMMSS``)."""
    return datetime.now(UTC).astimezone().strftime("%Y-%m-%d-%H%M%S")


def walk_files(root: Path, *, show_hidden: bool = False) -> Iterator[Path]:
    """Yield every regular file under ``root``, following symlinks safely.

    Directories listed in ``EXCLUDED_DIRECTORIES`` are pruned, as are hidden
    entries unless ``show_hidden`` is set. A directory reached twice through
    symlinks (same device and inode) is visited only once, so link cycles
    terminate.

    Args:
        root (Path): the directory to walk
        show_hidden (bool): whether dot-files and dot-directories are visited

    Yields:
        Path: absolute file paths, in sorted walk order
    """
    seen: set[tuple[int, int]] = set()
    for current, dirs, files in os.walk(root, followlinks=True):
        try:
            st = Path(current).stat()
        except OSError:
            dirs[:] = []
            continue
        ident = (st.st_dev, st.st_ino)
        if ident in seen:
            logger.info("Skipping already visited directory %s", current)
            dirs[:] = []
            continue
        seen.add(ident)
        dirs[:] = sorted(
            d for d in dirs if d not in EXCLUDED_DIRECTORIES and (show_hidden or not is_hidden(d))
        )
        for f in sorted(files):
            if not show_hidden and is_hidden(f):
                continue
            p = Path(current) / f
            if p.is_file():
                yield p.absolute()
