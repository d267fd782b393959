import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

__all__ = [
    "BENCH_TIMEOUT",
    "COMPARE_COUNT",
    "DEFAULT_BENCH",
    "STASH_LABEL",
    "ProfileType",
    "RunConfig",
    "ToolConfig",
]

# Matches every benchmark function of the package
DEFAULT_BENCH = "Bench*"

# Repeat count when two revisions are compared; benchcmp -best picks the best run
COMPARE_COUNT = 3

# Passed to `go test -timeout`; comparison runs with -count=3 can be slow
BENCH_TIMEOUT = "30m"

# Revision label of the uncommitted working state
STASH_LABEL = "stash"

# Environment overrides for the external tools
GO_EXE_ENV = "GOBENCH_GO_EXE"
BENCHCMP_ENV = "GOBENCH_BENCHCMP"
CALLGRIND_VIEWER_ENV = "GOBENCH_CALLGRIND_VIEWER"
LOG_LEVEL_ENV = "GOBENCH_LOG_LEVEL"

DEFAULT_GO_EXE = "go"
DEFAULT_BENCHCMP = "benchcmp"
DEFAULT_CALLGRIND_VIEWER = "qcachegrind"


class ProfileType(str, Enum):
    CPU = "cpu"
    MEM = "mem"
    BLOCK = "block"

    @property
    def test_flag(self) -> str:
        """The `go test` flag that writes this kind of profile."""
        return f"-{self.value}profile"


@dataclass(frozen=True)
class ToolConfig:
    go_exe: str = DEFAULT_GO_EXE
    benchcmp_exe: str = DEFAULT_BENCHCMP
    callgrind_viewer_exe: str = DEFAULT_CALLGRIND_VIEWER

    @classmethod
    def from_env(cls) -> "ToolConfig":
        go_exe = os.getenv(GO_EXE_ENV, "").strip() or DEFAULT_GO_EXE
        if go_exe != DEFAULT_GO_EXE:
            logger.debug("Using %s=%s", GO_EXE_ENV, go_exe)
        return cls(
            go_exe=go_exe,
            benchcmp_exe=os.getenv(BENCHCMP_ENV, "").strip() or DEFAULT_BENCHCMP,
            callgrind_viewer_exe=(
                os.getenv(CALLGRIND_VIEWER_ENV, "").strip() or DEFAULT_CALLGRIND_VIEWER
            ),
        )


@dataclass(frozen=True)
class RunConfig:
    package: str
    out_dir: Path
    bench: str = DEFAULT_BENCH
    count: int = 0  # 0: resolved once we know whether a comparison runs
    base: str = ""  # empty: no explicit base revision
    base_go_exe: str = ""  # empty: the baseline uses tools.go_exe
    tags: str = ""
    cpu: str = ""
    prof_type: ProfileType | None = None
    prof_callgrind: bool = False
    prof_sample_index: str = ""
    work_dir: Path = field(default_factory=Path.cwd)
    tools: ToolConfig = field(default_factory=ToolConfig)

    @property
    def profiling_enabled(self) -> bool:
        return self.prof_type is not None

    @property
    def compare_toolchains(self) -> bool:
        return bool(self.base_go_exe)

    @property
    def baseline_go_exe(self) -> str:
        return self.base_go_exe or self.tools.go_exe
