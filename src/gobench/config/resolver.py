import atexit
import logging
import shutil
import tempfile
from pathlib import Path

from ..errors import ConfigurationError, GobenchError
from .settings import COMPARE_COUNT, DEFAULT_BENCH, ProfileType, RunConfig, ToolConfig

logger = logging.getLogger(__name__)


class OutputDirectory:
    """Directory that holds every result and profile file of one invocation.

    Auto-allocated directories are removed at interpreter exit; a directory
    the user named is never removed.
    """

    def __init__(self, path: Path, *, temporary: bool) -> None:
        self.path = path
        self.temporary = temporary
        self._atexit_cleanup_handler = None

    @classmethod
    def create_temp(cls, *, register_cleanup: bool = True) -> "OutputDirectory":
        try:
            path = Path(tempfile.mkdtemp(prefix="gobench"))
        except OSError as exc:
            raise GobenchError(f"Cannot create temporary output directory: {exc}") from exc
        out_dir = cls(path, temporary=True)
        if register_cleanup:
            out_dir._atexit_cleanup_handler = out_dir.cleanup
            atexit.register(out_dir._atexit_cleanup_handler)
        logger.debug("Allocated output directory %s", path)
        return out_dir

    @classmethod
    def from_user(cls, path: str | Path) -> "OutputDirectory":
        resolved = Path(path).expanduser().resolve()
        try:
            resolved.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"Cannot create output directory {resolved}: {exc}") from exc
        return cls(resolved, temporary=False)

    def cleanup(self) -> None:
        if not self.temporary:
            return
        if self._atexit_cleanup_handler is not None:
            atexit.unregister(self._atexit_cleanup_handler)
            self._atexit_cleanup_handler = None
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to remove output directory %s: %s", self.path, exc)


def _resolve_prof_type(prof_type: str | None, prof_cpu: bool, prof_mem: bool) -> ProfileType | None:
    if prof_cpu and prof_mem:
        raise ConfigurationError(
            "mutually exclusive profiling modes: use either --prof-cpu or --prof-mem, not both"
        )

    selected: ProfileType | None = None
    if prof_type:
        try:
            selected = ProfileType(prof_type.strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in ProfileType)
            raise ConfigurationError(
                f"unknown profiling mode {prof_type!r} (expected one of: {choices})"
            ) from None

    flagged = ProfileType.CPU if prof_cpu else ProfileType.MEM if prof_mem else None
    if flagged is not None and selected is not None and flagged != selected:
        raise ConfigurationError(
            f"mutually exclusive profiling modes: --prof-{flagged.value} "
            f"conflicts with --prof-type {selected.value}"
        )
    return selected or flagged


def resolve_config(
    package: str,
    *,
    bench: str = DEFAULT_BENCH,
    count: int = 0,
    base: str = "",
    base_go_exe: str = "",
    tags: str = "",
    cpu: str = "",
    prof_type: str | None = None,
    prof_cpu: bool = False,
    prof_mem: bool = False,
    prof_callgrind: bool = False,
    prof_sample_index: str = "",
    out_dir: str | Path | None = None,
    work_dir: Path | None = None,
    tools: ToolConfig | None = None,
) -> tuple[RunConfig, OutputDirectory]:
    """Validate raw options and build the run configuration.

    All validation happens before the output directory is touched, so a
    rejected invocation leaves nothing behind.

    Returns:
        The validated config and the output directory that owns its files.

    Raises:
        ConfigurationError: If options are missing, invalid or conflicting.
    """
    package = (package or "").strip()
    if not package:
        raise ConfigurationError("--package is required (e.g. ./lib)")
    if count < 0:
        raise ConfigurationError(f"--count must not be negative, got {count}")

    selected = _resolve_prof_type(prof_type, prof_cpu, prof_mem)
    if selected is None and prof_callgrind:
        raise ConfigurationError("--prof-callgrind requires a profiling mode (--prof-type)")
    if selected is None and prof_sample_index:
        raise ConfigurationError("--prof-sample-index requires a profiling mode (--prof-type)")

    output = OutputDirectory.from_user(out_dir) if out_dir else OutputDirectory.create_temp()

    config = RunConfig(
        package=package,
        out_dir=output.path,
        bench=bench or DEFAULT_BENCH,
        count=count,
        base=(base or "").strip(),
        base_go_exe=(base_go_exe or "").strip(),
        tags=(tags or "").strip(),
        cpu=(cpu or "").strip(),
        prof_type=selected,
        prof_callgrind=prof_callgrind,
        prof_sample_index=(prof_sample_index or "").strip(),
        work_dir=work_dir or Path.cwd(),
        tools=tools or ToolConfig.from_env(),
    )
    return config, output


def resolve_count(count: int, comparing: bool) -> int:
    """Return the effective repeat count; 0 means "pick the default"."""
    if count > 0:
        return count
    return COMPARE_COUNT if comparing else 1
