import logging
from pathlib import Path

import click

from .config.settings import ProfileType, RunConfig
from .errors import ToolInvocationError
from .layout import OutputLayout
from .process import run_attached, run_command

logger = logging.getLogger(__name__)

# Keep the Go runtime's own frames out of the profile views
_HIDE_RUNTIME = r"-hide=^runtime\."


def build_pprof_args(config: RunConfig, layout: OutputLayout, base_name: str, current_name: str) -> list[str]:
    """Build the `go tool pprof` arguments (without the go binary).

    ``base_name`` may be empty, in which case no diff base is set.
    """
    args = ["tool", "pprof", _HIDE_RUNTIME]

    if base_name:
        args.append(f"-diff_base={layout.profile_file(base_name)}")

    if config.prof_sample_index:
        args.append(f"-sample_index={config.prof_sample_index}")
    elif config.prof_type == ProfileType.MEM:
        args.append("-sample_index=alloc_objects")

    if config.prof_callgrind:
        args.extend(["-callgrind", "-output", str(layout.callgrind_file())])

    args.append(str(layout.profile_file(current_name)))
    return args


class Reporter:
    """Compares result files with benchcmp and opens profiles in pprof."""

    def __init__(self, config: RunConfig, layout: OutputLayout) -> None:
        self.config = config
        self.layout = layout

    def compare(self, file_a: Path, file_b: Path) -> str:
        """Run ``benchcmp -best`` on two result files and print its report.

        Raises:
            ToolInvocationError: With benchcmp's own output, if it fails.
        """
        result = run_command(
            [self.config.tools.benchcmp_exe, "-best", str(file_a), str(file_b)],
            self.config.work_dir,
            error_cls=ToolInvocationError,
            combine_output=True,
        )
        report = result.stdout
        click.echo(report)
        return report

    def show_profile(self, base_name: str, current_name: str) -> None:
        """Open the current profile, diffed against the baseline when one exists.

        With callgrind output requested, pprof writes the callgrind file and
        the callgrind viewer is launched on it instead of an interactive shell.

        Raises:
            ToolInvocationError: If pprof or the viewer fails.
        """
        command = [
            self.config.tools.go_exe,
            *build_pprof_args(self.config, self.layout, base_name, current_name),
        ]

        if not self.config.prof_callgrind:
            run_attached(command, self.config.work_dir, error_cls=ToolInvocationError)
            return

        run_command(command, self.config.work_dir, error_cls=ToolInvocationError, combine_output=True)
        callgrind_file = self.layout.callgrind_file()
        click.echo(f"Wrote {callgrind_file}")
        run_attached(
            [self.config.tools.callgrind_viewer_exe, str(callgrind_file)],
            self.config.work_dir,
            error_cls=ToolInvocationError,
        )
