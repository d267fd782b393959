import logging
import subprocess  # nosec B404
from pathlib import Path
from typing import TextIO

import click

from .config.settings import BENCH_TIMEOUT, RunConfig
from .errors import BenchmarkExecutionError
from .layout import OutputLayout
from .process import command_line, kill_process_tree, run_command

logger = logging.getLogger(__name__)


def build_bench_args(config: RunConfig, layout: OutputLayout, run_name: str, count: int) -> list[str]:
    """Build the `go test` arguments for one benchmark run (without the go binary)."""
    args = [
        "test",
        "-run",
        "NONE",
        "-bench",
        config.bench,
        f"-count={count}",
        "-benchmem",
        "-timeout",
        BENCH_TIMEOUT,
    ]

    if config.tags:
        args.extend(["-tags", config.tags])
    if config.cpu:
        args.extend(["-cpu", config.cpu])

    if config.prof_type is not None:
        # Profiling makes go test keep the test binary; keep it out of the work tree
        args.extend(["-o", str(layout.test_binary(run_name))])
        args.extend([config.prof_type.test_flag, str(layout.profile_file(run_name))])

    args.append(config.package)
    return args


class GoBenchmarkEngine:
    """Runs `go test -bench` for one revision and tees its output to a result file."""

    def __init__(self, config: RunConfig, layout: OutputLayout) -> None:
        self.config = config
        self.layout = layout

    def version(self, go_exe: str) -> str:
        result = run_command(
            [go_exe, "version"],
            self.config.work_dir,
            error_cls=BenchmarkExecutionError,
            combine_output=True,
        )
        return result.stdout.strip()

    def run_benchmark(self, go_exe: str, run_name: str, count: int) -> Path:
        """Run the benchmarks of the current checkout and record them under ``run_name``.

        Standard output goes line by line to both the terminal and the result
        file; standard error is left attached to the terminal.

        Returns:
            Path of the result file.

        Raises:
            BenchmarkExecutionError: If go cannot be launched or exits non-zero,
                or the result file cannot be written.
        """
        click.echo(self.version(go_exe))

        command = [go_exe, *build_bench_args(self.config, self.layout, run_name, count)]
        bench_file = self.layout.bench_file(run_name)
        logger.info("Running %s > %s", command_line(command), bench_file)

        try:
            out = bench_file.open("w", encoding="utf-8")
        except OSError as exc:
            raise BenchmarkExecutionError(
                f"cannot write results to {bench_file}: {exc}", command=command
            ) from exc

        written = False
        try:
            returncode = self._tee(command, out, bench_file)
            written = True
        finally:
            try:
                out.close()
            except OSError as exc:
                # A failed write leaves buffered text behind; keep the first error
                if written:
                    raise BenchmarkExecutionError(
                        f"cannot write results to {bench_file}: {exc}", command=command
                    ) from exc
                logger.warning("Could not close %s: %s", bench_file, exc)

        if returncode != 0:
            raise BenchmarkExecutionError(
                f"benchmark run for {run_name!r} failed (exit {returncode})",
                command=command,
                returncode=returncode,
            )
        return bench_file

    def _tee(self, command: list[str], out: TextIO, bench_file: Path) -> int:
        try:
            process = subprocess.Popen(  # nosec B603 B607
                command,
                cwd=self.config.work_dir,
                stdout=subprocess.PIPE,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            raise BenchmarkExecutionError(
                f"{command[0]} could not be started: {exc}", command=command
            ) from exc

        try:
            assert process.stdout is not None
            for line in process.stdout:
                click.echo(line, nl=False)
                out.write(line)
                out.flush()
            return process.wait()
        except KeyboardInterrupt:
            kill_process_tree(process.pid)
            raise
        except OSError as exc:
            kill_process_tree(process.pid)
            process.wait()
            raise BenchmarkExecutionError(
                f"cannot write results to {bench_file}: {exc}", command=command
            ) from exc
        finally:
            if process.stdout is not None:
                process.stdout.close()
