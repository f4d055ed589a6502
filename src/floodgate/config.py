"""Loading window settings from `floodgate.toml`.

Only reads the file and validates it; building a counter from the result is
left to `WindowConfig.build`.
"""

from __future__ import annotations

import math
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from floodgate.errors import FloodgateConfigError
from floodgate.jumping_window import JumpingWindow

CONFIG_FILENAME = "floodgate.toml"

DEFAULT_CAPACITY = 1
DEFAULT_PERIOD_SECONDS = 1.0


@dataclass(frozen=True)
class WindowConfig:
    capacity: int
    period_seconds: float

    def build(self, *, clock: Callable[[], float] | None = None) -> JumpingWindow:
        """Create a fresh counter with these settings, starting its window now."""

        return JumpingWindow(self.capacity, self.period_seconds, clock=clock)


@dataclass(frozen=True)
class FloodgateConfig:
    version: int
    window: WindowConfig


def find_project_root(start: Path) -> Path:
    """Return the nearest directory at or above `start` holding `floodgate.toml`."""

    try:
        base = start.parent if start.is_file() else start
    except OSError:
        base = start.parent

    base = base.resolve()
    for candidate in (base, *base.parents):
        if (candidate / CONFIG_FILENAME).is_file():
            return candidate

    raise FloodgateConfigError(f"No {CONFIG_FILENAME} found in {base} or any parent directory.")


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise FloodgateConfigError(f"Expected [{name}] to be a table.")
    return dict(value)


def _as_int(value: Any, *, name: str) -> int:
    # TOML booleans parse to bool, which is an int subclass.
    if type(value) is not int:
        raise FloodgateConfigError(f"Expected {name} to be an integer, got {value!r}.")
    return value


def _as_number(value: Any, *, name: str) -> float:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise FloodgateConfigError(f"Expected {name} to be a number.")
    return float(value)


def window_config_from_table(table: Mapping[str, Any] | None) -> WindowConfig:
    """Validate a `[window]` table; missing keys fall back to the defaults."""

    tbl = _as_table(table, name="window")

    if "capacity" in tbl:
        capacity = _as_int(tbl["capacity"], name="window.capacity")
    else:
        capacity = DEFAULT_CAPACITY

    if "period_seconds" in tbl:
        period_seconds = _as_number(tbl["period_seconds"], name="window.period_seconds")
    else:
        period_seconds = DEFAULT_PERIOD_SECONDS

    if capacity < 0:
        raise FloodgateConfigError("Invalid config: window.capacity must be >= 0.")
    if not math.isfinite(period_seconds) or period_seconds < 0:
        raise FloodgateConfigError(
            "Invalid config: window.period_seconds must be a finite number >= 0."
        )

    return WindowConfig(capacity=capacity, period_seconds=period_seconds)


def load_config(*, root: Path | None = None, config_path: Path | None = None) -> FloodgateConfig:
    """Load and validate `floodgate.toml`.

    If neither `root` nor `config_path` are provided, the project root is
    discovered by walking upward from the current working directory.
    """

    if config_path is None:
        if root is None:
            root = find_project_root(Path.cwd())
        config_path = root / CONFIG_FILENAME

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise FloodgateConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise FloodgateConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise FloodgateConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise FloodgateConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise FloodgateConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise FloodgateConfigError(f"Unsupported config version: {version_i} (expected 1).")

    return FloodgateConfig(version=version_i, window=window_config_from_table(data.get("window")))
