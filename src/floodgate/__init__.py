from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from floodgate.config import FloodgateConfig, WindowConfig, load_config
from floodgate.errors import FloodgateConfigError, FloodgateError
from floodgate.jumping_window import JumpingWindow


def _package_version() -> str:
    try:
        return version("floodgate")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "FloodgateConfig",
    "FloodgateConfigError",
    "FloodgateError",
    "JumpingWindow",
    "WindowConfig",
    "__version__",
    "load_config",
]
