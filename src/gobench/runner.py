import logging
from dataclasses import dataclass, field
from pathlib import Path

import click

from .config import resolve_count
from .config.settings import STASH_LABEL, RunConfig
from .engine import GoBenchmarkEngine
from .errors import BenchmarkExecutionError, ConfigurationError, RevisionMutationError
from .layout import OutputLayout
from .reporter import Reporter
from .vcs import GitRepository

logger = logging.getLogger(__name__)

_NOTHING_STASHED = "No local changes to save"


@dataclass(frozen=True)
class RunPlan:
    """What one invocation benchmarks, resolved before any side effect."""

    current_label: str
    base_label: str = ""  # explicit base, STASH_LABEL, or empty
    stash: bool = False
    count: int = 1
    current_go_exe: str = "go"
    base_go_exe: str = "go"
    compare_toolchains: bool = False

    @property
    def comparing(self) -> bool:
        return bool(self.base_label) or self.compare_toolchains

    @property
    def current_run_name(self) -> str:
        return self.current_label

    @property
    def base_run_name(self) -> str:
        label = self.base_label or self.current_label
        if label == self.current_label:
            # Same revision on both sides; keep the baseline in its own file
            return f"{label}.base"
        return label

    def describe(self) -> str:
        if self.base_label:
            return f'Benchmark and compare branch "{self.base_label}" and "{self.current_label}".'
        if self.compare_toolchains:
            return (
                f'Benchmark branch "{self.current_label}" with '
                f'"{self.base_go_exe}" and "{self.current_go_exe}".'
            )
        return f'Benchmark branch "{self.current_label}"'


@dataclass
class RunSummary:
    plan: RunPlan
    result_files: list[Path] = field(default_factory=list)
    report: str | None = None


class BenchmarkRunner:
    """Sequences checkouts, stashes, benchmark runs and the final comparison.

    The baseline always runs before the current revision, and every success
    path ends on the branch the run started from.
    """

    def __init__(
        self,
        config: RunConfig,
        repository: GitRepository,
        engine: GoBenchmarkEngine,
        reporter: Reporter,
    ) -> None:
        self.config = config
        self.repository = repository
        self.engine = engine
        self.reporter = reporter

    @classmethod
    def from_config(cls, config: RunConfig) -> "BenchmarkRunner":
        layout = OutputLayout(config.out_dir)
        return cls(
            config,
            repository=GitRepository(config.work_dir),
            engine=GoBenchmarkEngine(config, layout),
            reporter=Reporter(config, layout),
        )

    def plan(self) -> RunPlan:
        """Resolve labels and repeat count from the repository state.

        Only queries git; nothing is checked out, stashed or run.

        Raises:
            ConfigurationError: If an explicit base meets uncommitted changes,
                or both runs would write the same result file.
        """
        current = self.repository.current_revision_label()
        dirty = self.repository.has_uncommitted_changes()

        base = self.config.base
        if dirty and base:
            raise ConfigurationError(
                f"uncommitted changes present while --base {base!r} was requested; "
                "commit or stash them, or drop --base to compare against the stash"
            )
        if dirty:
            base = STASH_LABEL

        comparing = bool(base) or self.config.compare_toolchains
        plan = RunPlan(
            current_label=current,
            base_label=base,
            stash=dirty,
            count=resolve_count(self.config.count, comparing),
            current_go_exe=self.config.tools.go_exe,
            base_go_exe=self.config.baseline_go_exe,
            compare_toolchains=self.config.compare_toolchains,
        )
        if plan.comparing:
            OutputLayout.check_distinct([plan.base_run_name, plan.current_run_name])
        logger.debug("Run plan: %s", plan)
        return plan

    def run(self) -> RunSummary:
        plan = self.plan()
        summary = RunSummary(plan=plan)
        click.echo(plan.describe())

        base_file: Path | None = None
        if plan.stash:
            base_file = self._run_stashed(plan)
        elif plan.comparing:
            base_file = self._run_base(plan)
        if base_file is not None:
            summary.result_files.append(base_file)

        current_file = self.engine.run_benchmark(
            plan.current_go_exe, plan.current_run_name, plan.count
        )
        summary.result_files.append(current_file)

        if plan.comparing and base_file is not None:
            click.echo("\n")
            summary.report = self.reporter.compare(base_file, current_file)
            if self.config.profiling_enabled:
                self.reporter.show_profile(plan.base_run_name, plan.current_run_name)

        return summary

    def _run_stashed(self, plan: RunPlan) -> Path:
        click.echo("Stash changes")
        output = self.repository.stash_save()
        if _NOTHING_STASHED in output:
            # Popping now would restore an unrelated, older stash entry
            raise RevisionMutationError(
                "git stash saved nothing although the working tree is dirty", detail=output
            )
        if output:
            click.echo(output)
        try:
            return self.engine.run_benchmark(plan.base_go_exe, plan.base_run_name, plan.count)
        except BenchmarkExecutionError as exc:
            logger.error("Baseline run failed, restoring stashed changes: %s", exc)
            raise
        finally:
            popped = self.repository.stash_pop()
            if popped:
                click.echo(popped)

    def _run_base(self, plan: RunPlan) -> Path:
        if plan.base_label:
            self.repository.checkout(plan.base_label)
        try:
            return self.engine.run_benchmark(plan.base_go_exe, plan.base_run_name, plan.count)
        except BenchmarkExecutionError as exc:
            logger.error("Baseline run failed, returning to %s: %s", plan.current_label, exc)
            raise
        finally:
            if plan.base_label and plan.base_label != plan.current_label:
                self.repository.checkout(plan.current_label)
