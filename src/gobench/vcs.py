import logging
import subprocess  # nosec B404
from pathlib import Path

import click

from .errors import RevisionMutationError, RevisionQueryError
from .process import run_command

logger = logging.getLogger(__name__)


class GitRepository:
    """Revision controller backed by the git CLI.

    Queries raise RevisionQueryError; checkout and stash raise
    RevisionMutationError. Nothing is retried: every mutation is echoed so a
    failed sequence can be recovered by hand.
    """

    def __init__(self, work_dir: Path, git_exe: str = "git") -> None:
        self.work_dir = work_dir
        self.git_exe = git_exe

    def _git(self, *args: str, **kwargs) -> subprocess.CompletedProcess[str]:
        return run_command([self.git_exe, *args], self.work_dir, **kwargs)

    def current_revision_label(self) -> str:
        """Return the branch name of the checkout, or a short hash if detached."""
        result = self._git("rev-parse", "--abbrev-ref", "HEAD", error_cls=RevisionQueryError)
        label = result.stdout.strip()
        if label == "HEAD":
            result = self._git("rev-parse", "--short", "HEAD", error_cls=RevisionQueryError)
            label = result.stdout.strip()
            logger.info("Detached HEAD, using commit %s as revision label", label)
        if not label:
            raise RevisionQueryError(
                "git did not report a current revision", command=[self.git_exe, "rev-parse"]
            )
        return label

    def has_uncommitted_changes(self) -> bool:
        # Refresh stat info first, otherwise touched-but-unchanged files read as dirty
        self._git("update-index", "-q", "--refresh", error_cls=RevisionQueryError, check=False)
        result = self._git(
            "diff-index", "--quiet", "HEAD", "--", error_cls=RevisionQueryError, check=False
        )
        if result.returncode == 0:
            return False
        if result.returncode == 1:
            return True
        detail = (result.stderr or result.stdout or "").strip()
        raise RevisionQueryError(
            f"git diff-index failed (exit {result.returncode}): {detail or 'unknown error'}",
            command=[self.git_exe, "diff-index", "--quiet", "HEAD", "--"],
            returncode=result.returncode,
            detail=detail,
        )

    def checkout(self, label: str) -> None:
        logger.info("git checkout %s", label)
        result = self._git("checkout", label, error_cls=RevisionMutationError, combine_output=True)
        output = result.stdout.strip()
        if output:
            click.echo(output)

    def stash_save(self) -> str:
        logger.info("git stash push")
        result = self._git("stash", "push", error_cls=RevisionMutationError)
        return result.stdout.strip()

    def stash_pop(self) -> str:
        logger.info("git stash pop")
        result = self._git("stash", "pop", error_cls=RevisionMutationError)
        return result.stdout.strip()
