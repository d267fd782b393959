import shutil
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from gobench.errors import RevisionMutationError, RevisionQueryError
from gobench.vcs import GitRepository


def _completed(args: list[str], returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


def _patch_run(*results):
    return patch("gobench.process.subprocess.run", side_effect=list(results))


class TestCurrentRevisionLabel:
    def test_branch_name(self, tmp_path: Path) -> None:
        with _patch_run(_completed([], stdout="master\n")) as run:
            assert GitRepository(tmp_path).current_revision_label() == "master"
        assert run.call_args.args[0] == ["git", "rev-parse", "--abbrev-ref", "HEAD"]
        assert run.call_args.kwargs["cwd"] == tmp_path

    def test_detached_head_falls_back_to_hash(self, tmp_path: Path) -> None:
        with _patch_run(_completed([], stdout="HEAD\n"), _completed([], stdout="3f2a9c1\n")):
            assert GitRepository(tmp_path).current_revision_label() == "3f2a9c1"

    def test_query_failure_raises(self, tmp_path: Path) -> None:
        failure = _completed([], returncode=128, stderr="fatal: not a git repository")
        with _patch_run(failure):
            with pytest.raises(RevisionQueryError, match="not a git repository"):
                GitRepository(tmp_path).current_revision_label()

    def test_git_missing_raises(self, tmp_path: Path) -> None:
        with patch("gobench.process.subprocess.run", side_effect=FileNotFoundError("git")):
            with pytest.raises(RevisionQueryError, match="git not found"):
                GitRepository(tmp_path).current_revision_label()


class TestHasUncommittedChanges:
    def test_clean(self, tmp_path: Path) -> None:
        with _patch_run(_completed([]), _completed([], returncode=0)):
            assert GitRepository(tmp_path).has_uncommitted_changes() is False

    def test_dirty(self, tmp_path: Path) -> None:
        with _patch_run(_completed([], returncode=1), _completed([], returncode=1)):
            assert GitRepository(tmp_path).has_uncommitted_changes() is True

    def test_other_failure_is_fatal(self, tmp_path: Path) -> None:
        bad_head = _completed([], returncode=128, stderr="fatal: bad revision 'HEAD'")
        with _patch_run(_completed([]), bad_head):
            with pytest.raises(RevisionQueryError, match="bad revision"):
                GitRepository(tmp_path).has_uncommitted_changes()


class TestMutations:
    def test_checkout_echoes_output(self, tmp_path: Path, capsys) -> None:
        with _patch_run(_completed([], stdout="Switched to branch 'testing'\n")) as run:
            GitRepository(tmp_path).checkout("testing")
        assert run.call_args.args[0] == ["git", "checkout", "testing"]
        assert run.call_args.kwargs["stderr"] == subprocess.STDOUT
        assert "Switched to branch 'testing'" in capsys.readouterr().out

    def test_checkout_failure_carries_git_output(self, tmp_path: Path) -> None:
        failure = _completed(
            [], returncode=1, stdout="error: pathspec 'nope' did not match any file(s)"
        )
        with _patch_run(failure):
            with pytest.raises(RevisionMutationError) as exc_info:
                GitRepository(tmp_path).checkout("nope")
        assert exc_info.value.returncode == 1
        assert "pathspec 'nope'" in exc_info.value.detail

    def test_stash_save_and_pop(self, tmp_path: Path) -> None:
        with _patch_run(
            _completed([], stdout="Saved working directory\n"),
            _completed([], stdout="Dropped refs/stash@{0}\n"),
        ) as run:
            repo = GitRepository(tmp_path)
            assert repo.stash_save() == "Saved working directory"
            assert repo.stash_pop() == "Dropped refs/stash@{0}"
        assert [c.args[0] for c in run.call_args_list] == [
            ["git", "stash", "push"],
            ["git", "stash", "pop"],
        ]

    def test_stash_failure_raises(self, tmp_path: Path) -> None:
        with _patch_run(_completed([], returncode=1, stderr="CONFLICT (content)")):
            with pytest.raises(RevisionMutationError, match="CONFLICT"):
                GitRepository(tmp_path).stash_pop()


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    _git(tmp_path, "init", "-b", "master")
    _git(tmp_path, "config", "user.email", "test@test.com")
    _git(tmp_path, "config", "user.name", "Test")
    (tmp_path / "bench.txt").write_text("one\n")
    _git(tmp_path, "add", "bench.txt")
    _git(tmp_path, "commit", "-m", "first")
    return tmp_path


class TestAgainstRealGit:
    def test_clean_checkout(self, git_repo: Path) -> None:
        repo = GitRepository(git_repo)
        assert repo.current_revision_label() == "master"
        assert repo.has_uncommitted_changes() is False

    def test_stash_round_trip(self, git_repo: Path) -> None:
        (git_repo / "bench.txt").write_text("two\n")
        repo = GitRepository(git_repo)
        assert repo.has_uncommitted_changes() is True

        repo.stash_save()
        assert (git_repo / "bench.txt").read_text() == "one\n"
        assert repo.has_uncommitted_changes() is False

        repo.stash_pop()
        assert (git_repo / "bench.txt").read_text() == "two\n"

    def test_checkout_branch_and_back(self, git_repo: Path) -> None:
        _git(git_repo, "branch", "feature/x")
        repo = GitRepository(git_repo)
        repo.checkout("feature/x")
        assert repo.current_revision_label() == "feature/x"
        repo.checkout("master")
        assert repo.current_revision_label() == "master"
