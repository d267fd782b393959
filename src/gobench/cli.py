import logging
import os
import sys

import click
from dotenv import load_dotenv

from . import __version__
from .config import DEFAULT_BENCH, LOG_LEVEL_ENV, ProfileType, resolve_config
from .errors import ConfigurationError, GobenchError
from .runner import BenchmarkRunner

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    log_level_str = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    log_level = getattr(logging, log_level_str, logging.WARNING)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--bench",
    default=DEFAULT_BENCH,
    show_default=True,
    help="Run only those benchmarks matching a regular expression",
)
@click.option(
    "--count",
    default=0,
    type=int,
    help="Run each benchmark COUNT times (default: 1, or 3 when comparing)",
)
@click.option("--package", required=True, help="Package to test (e.g. ./lib)")
@click.option(
    "--base",
    default="",
    help="Git version (tag, branch etc.) to compare with. "
    "Leave empty to run on current branch only.",
)
@click.option(
    "--base-go-exe",
    default="",
    help="Go binary for the baseline run (compare two toolchains)",
)
@click.option("--tags", default="", help="Build tags passed to go test")
@click.option("--cpu", default="", help="Comma-separated GOMAXPROCS values to sweep")
@click.option(
    "--prof-type",
    type=click.Choice([p.value for p in ProfileType], case_sensitive=False),
    default=None,
    help="Write a profile of this kind and open it in pprof",
)
@click.option("--prof-cpu", is_flag=True, help="Write a cpu profile and run pprof")
@click.option("--prof-mem", is_flag=True, help="Write a mem profile and run pprof")
@click.option(
    "--prof-callgrind",
    is_flag=True,
    help="Export the profile in callgrind format and open it in a callgrind viewer",
)
@click.option("--prof-sample-index", default="", help="pprof sample index to display")
@click.option(
    "--out-dir",
    default=None,
    type=click.Path(file_okay=False),
    help="Directory to write files to. Defaults to a temp dir.",
)
@click.version_option(__version__, prog_name="gobench")
def main(
    bench: str,
    count: int,
    package: str,
    base: str,
    base_go_exe: str,
    tags: str,
    cpu: str,
    prof_type: str | None,
    prof_cpu: bool,
    prof_mem: bool,
    prof_callgrind: bool,
    prof_sample_index: str,
    out_dir: str | None,
) -> None:
    """Benchmark a Go package and compare it against another revision.

    Without --base, uncommitted changes are compared against the last commit.
    """
    load_dotenv()
    _configure_logging()

    try:
        config, _output = resolve_config(
            package,
            bench=bench,
            count=count,
            base=base,
            base_go_exe=base_go_exe,
            tags=tags,
            cpu=cpu,
            prof_type=prof_type,
            prof_cpu=prof_cpu,
            prof_mem=prof_mem,
            prof_callgrind=prof_callgrind,
            prof_sample_index=prof_sample_index,
            out_dir=out_dir,
        )
        BenchmarkRunner.from_config(config).run()
    except ConfigurationError as exc:
        raise click.UsageError(str(exc)) from exc
    except GobenchError as exc:
        logger.debug("Aborting: %s", exc.error_code)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
