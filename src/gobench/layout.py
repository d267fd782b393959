from collections.abc import Iterable
from pathlib import Path

from .errors import ConfigurationError

# Revision labels are often hierarchical branch names (feature/foo)
_SEPARATORS = ("/", "\\")
_SUBSTITUTE = "_"

CALLGRIND_FILENAME = "callgrind.out"


def normalize_label(label: str) -> str:
    """Map a revision label to a file name stem.

    Path separators become underscores; applying it twice is a no-op.
    """
    stem = label
    for sep in _SEPARATORS:
        stem = stem.replace(sep, _SUBSTITUTE)
    return stem


class OutputLayout:
    """File naming for every artifact written to the output directory."""

    def __init__(self, out_dir: Path) -> None:
        self.out_dir = out_dir

    def bench_file(self, name: str) -> Path:
        return self.out_dir / f"{normalize_label(name)}.bench"

    def profile_file(self, name: str) -> Path:
        return self.out_dir / f"{normalize_label(name)}.pprof"

    def test_binary(self, name: str) -> Path:
        return self.out_dir / f"{normalize_label(name)}.test"

    def callgrind_file(self) -> Path:
        return self.out_dir / CALLGRIND_FILENAME

    @staticmethod
    def check_distinct(names: Iterable[str]) -> None:
        """Reject run names that would share a result file.

        Raises:
            ConfigurationError: If two distinct names normalize to one stem.
        """
        seen: dict[str, str] = {}
        for name in names:
            stem = normalize_label(name)
            other = seen.setdefault(stem, name)
            if other != name:
                raise ConfigurationError(
                    f"revisions {other!r} and {name!r} would both write {stem}.bench; "
                    "rename one of them or compare by commit hash"
                )
