"""
Helper utilities for Inbox Docs.

Common functions used across domains.
"""

import fnmatch
import hashlib
import os
import re
import tempfile
from pathlib import Path
from typing import List


DEFAULT_EXCLUDE_PATTERNS = [
    '*.pyc',
    '__pycache__',
    'node_modules',
    '.git',
    '.ipynb_checkpoints',
    '*.swp',
    '*.tmp',
    '~$*',
]


def sanitize_filename(filename: str) -> str:
    """
    Restrict a file stem to letters, digits, underscore and hyphen.

    Every other character (dots, separators, spaces, non-ASCII) becomes an
    underscore, so the result can never contain a path component.
    """
    sanitized = re.sub(r'[^A-Za-z0-9_-]', '_', filename)
    return sanitized or '_'


def hash_text(text: str) -> str:
    """Generate SHA256 hash of text."""
    return hashlib.sha256(text.encode()).hexdigest()


def get_file_extension(path: Path) -> str:
    """Get lower-cased file extension including the dot."""
    return path.suffix.lower()


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""
    try:
        return path.expanduser().resolve()
    except FileNotFoundError:
        return path.expanduser().absolute()


def has_hidden_part(path: Path) -> bool:
    """Check if any component of ``path`` is hidden (use a root-relative path)."""
    return any(part.startswith('.') and part not in ('.', '..') for part in path.parts)


def should_exclude_path(path: Path, exclude_patterns: List[str] = None) -> bool:
    """
    Check if path should be excluded based on patterns.

    Args:
        path: Path to check
        exclude_patterns: List of glob patterns matched against each path component

    Returns:
        True if should exclude, False otherwise
    """
    if exclude_patterns is None:
        exclude_patterns = DEFAULT_EXCLUDE_PATTERNS

    for part in path.parts:
        for pattern in exclude_patterns:
            if fnmatch.fnmatch(part, pattern):
                return True

    return False


def count_lines(text: str) -> int:
    """Count lines the way an editor shows them (no phantom trailing line)."""
    return len(text.splitlines())


def count_words(text: str) -> int:
    """Count whitespace-delimited words."""
    return len(text.split())


def code_fence(text: str, info: str = "") -> str:
    """Fenced block whose fence is longer than any backtick run inside ``text``."""
    longest = max((len(run) for run in re.findall(r'`+', text)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}{info}\n{text.rstrip(chr(10))}\n{fence}"


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """
    Write ``data`` to ``path`` through a temporary sibling and a rename.

    Readers (and concurrent writers) only ever see the old file or the
    complete new one.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """Text variant of :func:`atomic_write_bytes`."""
    atomic_write_bytes(path, text.encode(encoding))

