"""Authorship lookup through the ``git`` command line.

Every failure (not a repository, git not installed, timeout) is logged at
debug level and reported as "no information" rather than raised.
"""

from __future__ import annotations

import logging
import re
import subprocess
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .models import GitAuthorInfo, GitBlameInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
CACHE_TTL_SECONDS = 60.0
_COMMIT_LINE = re.compile(r"^[0-9a-f]{40}")


class GitService:
    """Blame and history queries for a single working tree file."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, cache_ttl: float = CACHE_TTL_SECONDS) -> None:
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._cache: Dict[Tuple[str, int], Tuple[float, GitBlameInfo]] = {}

    # ------------------------------------------------------------------
    # Process helpers
    # ------------------------------------------------------------------

    def _run(self, args: List[str], file_path: str, timeout: Optional[float] = None) -> Optional[str]:
        work_dir = Path(file_path).parent
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=str(work_dir),
                capture_output=True,
                text=True,
                timeout=timeout or self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("git %s failed for %s: %s", args[0], file_path, exc)
            return None
        if result.returncode != 0:
            logger.debug("git %s exited %s: %s", args[0], result.returncode, result.stderr.strip())
            return None
        return result.stdout

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_git_repository(self, file_path: str) -> bool:
        return self._run(["rev-parse", "--git-dir"], file_path, timeout=2.0) is not None

    def get_blame_for_line(self, file_path: str, line: int) -> Optional[GitBlameInfo]:
        """Blame for a 0-based *line*, cached for ``cache_ttl`` seconds."""
        key = (file_path, line)
        cached = self._cache.get(key)
        now = time.monotonic()
        if cached is not None and now - cached[0] < self.cache_ttl:
            return cached[1]

        name = Path(file_path).name
        output = self._run(
            ["blame", "-L", f"{line + 1},{line + 1}", "--porcelain", "--", name],
            file_path,
        )
        if output is None:
            return None
        info = parse_blame_output(output)
        if info is not None:
            self._cache[key] = (now, info)
        return info

    def get_blame_for_lines(self, file_path: str, lines: Sequence[int]) -> Dict[int, GitBlameInfo]:
        """Blame several 0-based lines with one git invocation."""
        result: Dict[int, GitBlameInfo] = {}
        if not lines:
            return result

        args = ["blame"]
        for line in lines:
            args.extend(["-L", f"{line + 1},{line + 1}"])
        args.extend(["--porcelain", "--", Path(file_path).name])
        output = self._run(args, file_path, timeout=self.timeout * 2)
        if output is None:
            return result

        blocks = [b for b in re.split(r"(?m)(?=^[0-9a-f]{40} )", output) if b.strip()]
        for line, block in zip(lines, blocks):
            info = parse_blame_output(block)
            if info is not None:
                result[line] = info
        return result

    def get_class_git_info(self, file_path: str, class_line: int) -> Optional[GitAuthorInfo]:
        """Original author of the file plus last modifier of *class_line*."""
        name = Path(file_path).name
        log_output = self._run(
            ["log", "--follow", "--diff-filter=A", "--format=%an|%ad", "--date=short", "--", name],
            file_path,
        )
        last = self.get_blame_for_line(file_path, class_line)
        if log_output is None and last is None:
            return None

        original_author = ""
        if log_output:
            entries = [entry for entry in log_output.strip().splitlines() if entry.strip()]
            if entries:
                original_author = entries[-1].split("|", 1)[0].strip()

        return GitAuthorInfo(
            author=original_author or (last.author if last else "") or "Unknown",
            last_modifier=last.author if last else "Unknown",
            last_modify_date=last.date if last else "",
        )

    def clear_cache(self) -> None:
        self._cache.clear()


def parse_blame_output(output: str) -> Optional[GitBlameInfo]:
    """Parse one ``git blame --porcelain`` record."""
    if not output.strip():
        return None

    author = email = date = commit_hash = ""
    for line in output.split("\n"):
        if _COMMIT_LINE.match(line):
            commit_hash = line[:40]
        elif line.startswith("author "):
            author = line[len("author "):]
        elif line.startswith("author-mail "):
            email = line[len("author-mail "):].strip("<>")
        elif line.startswith("author-time "):
            try:
                stamp = int(line[len("author-time "):])
            except ValueError:
                continue
            date = datetime.fromtimestamp(stamp, tz=timezone.utc).date().isoformat()

    if not author:
        return None
    return GitBlameInfo(author=author, email=email, date=date, commit_hash=commit_hash)
