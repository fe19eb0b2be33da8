from __future__ import annotations
from pathlib import Path
import logging
import sys

logger = logging.getLogger(__name__)


def _find_git_root(start: Path) -> Path | None:
    cur = start
    for _ in range(200):
        if (cur / ".git").exists():
            return cur
        if cur.parent == cur:
            return None
        cur = cur.parent
    return None


def assert_safe_data_dir(data_dir: Path, allow_repo_data_path: bool) -> None:
    # journal + photos + voice notes must not end up committed somewhere
    git_root = _find_git_root(Path(data_dir))
    if git_root and not allow_repo_data_path:
        logger.error("data directory %s is inside git work tree %s", data_dir, git_root)
        print("🚫 Refusing to keep the journal inside a git repo.", file=sys.stderr)
        print(f"   data_dir:  {data_dir}", file=sys.stderr)
        print(f"   repo_root: {git_root}", file=sys.stderr)
        print(
            "   Fix: use ~/.config/moodjournal, set MOODJOURNAL_HOME, or pass --allow-repo-data-path",
            file=sys.stderr,
        )
        raise SystemExit(2)
    if git_root:
        logger.warning("using data directory inside git work tree %s (override given)", git_root)
