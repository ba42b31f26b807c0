"""Git helpers: object checks and committing planning documents."""

import logging
import subprocess
from pathlib import Path
from typing import Any

from ariadna.config import load_config
from ariadna.errors import AriadnaError, ErrorCode, usage_error

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 30


def run_git(root: Path, args: list[str], timeout: int = GIT_TIMEOUT) -> subprocess.CompletedProcess[str]:
    """Run a git command in `root` without a shell.

    A missing git binary or a timeout is reported as a failed process
    (returncode 1) so callers only need to inspect the result.
    """
    cmd = ["git", *args]
    try:
        result = subprocess.run(
            cmd,
            cwd=root,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("git %s could not run: %s", " ".join(args), e)
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr=str(e))

    logger.debug("git %s -> %d", " ".join(args), result.returncode)
    return result


def is_ignored(root: Path, target: str) -> bool:
    return run_git(root, ["check-ignore", "-q", "--", target]).returncode == 0


def is_commit(root: Path, ref: str) -> bool:
    """True when `ref` names a commit object in the repository."""
    result = run_git(root, ["cat-file", "-t", ref])
    return result.returncode == 0 and result.stdout.strip() == "commit"


def commit(root: Path, message: str | None, files: list[str] | None = None, amend: bool = False) -> dict[str, Any]:
    """Stage planning files and commit them.

    Skips when `commit_docs` is off or `.planning` is git-ignored. Without
    explicit `files` the whole `.planning/` directory is staged.
    """
    if not message and not amend:
        raise usage_error("commit message required")

    if not load_config(root).commit_docs:
        return {"committed": False, "hash": None, "reason": "skipped_commit_docs_false"}

    if is_ignored(root, ".planning"):
        return {"committed": False, "hash": None, "reason": "skipped_gitignored"}

    for target in files or [".planning/"]:
        run_git(root, ["add", target])

    if run_git(root, ["diff", "--cached", "--quiet"]).returncode == 0:
        return {"committed": False, "hash": None, "reason": "nothing_to_commit"}

    args = ["commit", "--amend", "-m", message or ""] if amend else ["commit", "-m", message or ""]
    result = run_git(root, args)
    if result.returncode != 0:
        reason = (result.stderr or result.stdout).strip()
        logger.warning("git commit failed: %s", reason)
        return {"committed": False, "hash": None, "reason": reason}

    head = run_git(root, ["rev-parse", "--short", "HEAD"])
    if head.returncode != 0:
        raise AriadnaError(ErrorCode.GIT_FAILED, {"command": "rev-parse", "detail": head.stderr.strip()})
    short_hash = head.stdout.strip()
    logger.info("Committed %s: %s", short_hash, message)
    return {"committed": True, "hash": short_hash, "message": message}
