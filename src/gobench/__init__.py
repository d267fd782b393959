__version__ = "0.5.0"

from .config import RunConfig, ToolConfig, resolve_config
from .runner import BenchmarkRunner, RunPlan

__all__ = [
    "__version__",
    "BenchmarkRunner",
    "RunConfig",
    "RunPlan",
    "ToolConfig",
    "resolve_config",
]
