"""Filesystem helpers for specgrid."""

import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator, Pattern

from specgrid.errors import CleanupError


@lru_cache(maxsize=None)
def glob_to_regex(pattern: str) -> Pattern[str]:
    """Translates a `**`-aware glob into a regex over POSIX relative paths."""
    parts = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
            continue
        if pattern.startswith("**", index):
            parts.append(".*")
            index += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        index += 1
    return re.compile("".join(parts) + r"\Z")


def _normalize(pattern: str) -> str:
    return pattern[2:] if pattern.startswith("./") else pattern


def matches_any(relative_path: str, patterns: Iterable[str]) -> bool:
    return any(glob_to_regex(_normalize(pattern)).match(relative_path) for pattern in patterns)


def iter_files(root: str, exclude: Iterable[str] = ()) -> Iterator[str]:
    """Yields sorted POSIX paths of regular files under ``root``, minus ``exclude``."""
    exclude = tuple(exclude)
    base = Path(root)
    for current_root, dirs, files in os.walk(root):
        dirs.sort()
        for file_name in sorted(files):
            full_path = Path(current_root) / file_name
            relative = full_path.relative_to(base).as_posix()
            if full_path.is_symlink() or matches_any(relative, exclude):
                continue
            yield relative


class FileSystemService:
    """Encapsulates file side effects."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def delete_file(self, path: str):
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise CleanupError(f"Could not remove {path}: {exc}") from exc
        self.logger.debug("Removed file: %s", path)
