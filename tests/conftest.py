from pathlib import Path

import pytest

from gobench.config import RunConfig, ToolConfig
from gobench.errors import BenchmarkExecutionError, RevisionMutationError


class FakeRepository:
    """Records git operations instead of running them."""

    def __init__(self, calls: list[tuple], *, branch: str = "master", dirty: bool = False):
        self.calls = calls
        self.branch = branch
        self.dirty = dirty
        self.stash_output = "Saved working directory and index state WIP on master"
        self.fail_checkout: set[str] = set()
        self.fail_stash_pop = False

    def current_revision_label(self) -> str:
        self.calls.append(("current_revision_label",))
        return self.branch

    def has_uncommitted_changes(self) -> bool:
        self.calls.append(("has_uncommitted_changes",))
        return self.dirty

    def checkout(self, label: str) -> None:
        self.calls.append(("checkout", label))
        if label in self.fail_checkout:
            raise RevisionMutationError(f"pathspec '{label}' did not match")

    def stash_save(self) -> str:
        self.calls.append(("stash_save",))
        return self.stash_output

    def stash_pop(self) -> str:
        self.calls.append(("stash_pop",))
        if self.fail_stash_pop:
            raise RevisionMutationError("conflict while restoring stashed changes")
        return ""


class FakeEngine:
    def __init__(self, calls: list[tuple], out_dir: Path):
        self.calls = calls
        self.out_dir = out_dir
        self.fail_runs: set[str] = set()

    def run_benchmark(self, go_exe: str, run_name: str, count: int) -> Path:
        self.calls.append(("run_benchmark", go_exe, run_name, count))
        if run_name in self.fail_runs:
            raise BenchmarkExecutionError(f"benchmark run for {run_name!r} failed (exit 1)")
        path = self.out_dir / f"{run_name}.bench"
        path.write_text("BenchmarkSleep-8   1   1000 ns/op\n", encoding="utf-8")
        return path


class FakeReporter:
    def __init__(self, calls: list[tuple]):
        self.calls = calls

    def compare(self, file_a: Path, file_b: Path) -> str:
        self.calls.append(("compare", file_a.name, file_b.name))
        return "benchmark  old bytes  new bytes  delta\n"

    def show_profile(self, base_name: str, current_name: str) -> None:
        self.calls.append(("show_profile", base_name, current_name))


@pytest.fixture
def tools() -> ToolConfig:
    return ToolConfig(go_exe="go", benchcmp_exe="benchcmp", callgrind_viewer_exe="qcachegrind")


@pytest.fixture
def run_config(tmp_path: Path, tools: ToolConfig) -> RunConfig:
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    return RunConfig(
        package="./testing",
        out_dir=out_dir,
        bench="Sleep",
        work_dir=tmp_path,
        tools=tools,
    )


@pytest.fixture
def calls() -> list[tuple]:
    return []


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in [
        "GOBENCH_GO_EXE",
        "GOBENCH_BENCHCMP",
        "GOBENCH_CALLGRIND_VIEWER",
        "GOBENCH_LOG_LEVEL",
    ]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_repo(calls: list[tuple]) -> FakeRepository:
    return FakeRepository(calls)


@pytest.fixture
def fake_engine(calls: list[tuple], run_config: RunConfig) -> FakeEngine:
    return FakeEngine(calls, run_config.out_dir)


@pytest.fixture
def fake_reporter(calls: list[tuple]) -> FakeReporter:
    return FakeReporter(calls)
