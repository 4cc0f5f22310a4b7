"""Ignore-list file maintenance (``.gitignore`` entries for external paths)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def append_entry(ignore_file: Path, entry: str) -> None:
    """Append *entry* as a literal line. Existing duplicates are left alone."""
    prefix = ""
    if ignore_file.is_file():
        content = ignore_file.read_text(encoding="utf-8")
        if content and not content.endswith("\n"):
            prefix = "\n"
    logger.debug("Adding %r to %s", entry, ignore_file)
    with ignore_file.open("a", encoding="utf-8") as f:
        f.write(f"{prefix}{entry}\n")


def remove_entry(ignore_file: Path, entry: str) -> int:
    """Drop every line equal to *entry*; return how many lines were removed.

    Line endings of the kept lines are written back unchanged.
    """
    if not ignore_file.is_file():
        return 0

    with ignore_file.open(encoding="utf-8", newline="") as f:
        lines = f.read().splitlines(keepends=True)
    kept = [line for line in lines if line.rstrip("\r\n") != entry]
    removed = len(lines) - len(kept)
    if removed:
        logger.debug("Removing %d line(s) %r from %s", removed, entry, ignore_file)
        with ignore_file.open("w", encoding="utf-8", newline="") as f:
            f.write("".join(kept))
    return removed
