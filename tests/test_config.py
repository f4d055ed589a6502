from __future__ import annotations

from pathlib import Path

import pytest

from floodgate.config import (
    WindowConfig,
    find_project_root,
    load_config,
    window_config_from_table,
)
from floodgate.errors import FloodgateConfigError


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "floodgate.toml"
    p.write_text(text, encoding="utf-8")
    return p


def test_load_minimal_config_defaults_apply(tmp_path: Path) -> None:
    _write(tmp_path, "version = 1\n")
    cfg = load_config(root=tmp_path)

    assert cfg.version == 1
    assert cfg.window == WindowConfig(capacity=1, period_seconds=1.0)


def test_load_config_overrides_work(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "\n".join(
            [
                "version = 1",
                "",
                "[window]",
                "capacity = 5",
                "period_seconds = 30",
                "",
            ]
        ),
    )
    cfg = load_config(root=tmp_path)

    assert cfg.window.capacity == 5
    assert cfg.window.period_seconds == 30.0
    assert isinstance(cfg.window.period_seconds, float)


def test_load_config_from_explicit_path(tmp_path: Path) -> None:
    p = tmp_path / "custom.toml"
    p.write_text("version = 1\n[window]\ncapacity = 0\nperiod_seconds = 0.5\n", encoding="utf-8")

    cfg = load_config(config_path=p)
    assert cfg.window == WindowConfig(capacity=0, period_seconds=0.5)


def test_invalid_toml_raises(tmp_path: Path) -> None:
    _write(tmp_path, "version = \n")
    with pytest.raises(FloodgateConfigError):
        load_config(root=tmp_path)


def test_non_utf8_raises(tmp_path: Path) -> None:
    (tmp_path / "floodgate.toml").write_bytes(b"version = 1\n# \xff\xfe\n")
    with pytest.raises(FloodgateConfigError, match="UTF-8"):
        load_config(root=tmp_path)


def test_missing_config_raises(tmp_path: Path) -> None:
    with pytest.raises(FloodgateConfigError, match="Missing"):
        load_config(config_path=tmp_path / "floodgate.toml")


@pytest.mark.parametrize("text", ["", "[window]\ncapacity = 1\n"])
def test_missing_version_raises(tmp_path: Path, text: str) -> None:
    _write(tmp_path, text)
    with pytest.raises(FloodgateConfigError, match="version"):
        load_config(root=tmp_path)


def test_unsupported_version_raises(tmp_path: Path) -> None:
    _write(tmp_path, "version = 2\n")
    with pytest.raises(FloodgateConfigError, match="Unsupported"):
        load_config(root=tmp_path)


@pytest.mark.parametrize(
    "body",
    [
        'capacity = "3"',
        "capacity = 1.5",
        "capacity = true",
        "capacity = -1",
        'period_seconds = "10"',
        "period_seconds = false",
        "period_seconds = -0.5",
    ],
)
def test_bad_window_values_raise(tmp_path: Path, body: str) -> None:
    _write(tmp_path, f"version = 1\n[window]\n{body}\n")
    with pytest.raises(FloodgateConfigError):
        load_config(root=tmp_path)


@pytest.mark.parametrize("value", ["nan", "inf", "+inf", "-inf"])
def test_non_finite_period_raises(tmp_path: Path, value: str) -> None:
    _write(tmp_path, f"version = 1\n[window]\nperiod_seconds = {value}\n")
    with pytest.raises(FloodgateConfigError, match="finite"):
        load_config(root=tmp_path)


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_window_config_from_table_rejects_non_finite(value: float) -> None:
    with pytest.raises(FloodgateConfigError):
        window_config_from_table({"period_seconds": value})


def test_window_must_be_a_table(tmp_path: Path) -> None:
    _write(tmp_path, "version = 1\nwindow = 3\n")
    with pytest.raises(FloodgateConfigError, match="table"):
        load_config(root=tmp_path)


def test_window_config_from_table_standalone() -> None:
    assert window_config_from_table(None) == WindowConfig(capacity=1, period_seconds=1.0)
    assert window_config_from_table({"capacity": 3, "period_seconds": 2}) == WindowConfig(
        capacity=3, period_seconds=2.0
    )


def test_window_config_build() -> None:
    cfg = WindowConfig(capacity=2, period_seconds=10.0)
    w = cfg.build(clock=lambda: 50.0)

    assert w.capacity == 2
    assert w.period == 10.0
    assert w.last_reset == 50.0
    assert w.tokens() == 2


def test_find_project_root_success(tmp_path: Path) -> None:
    _write(tmp_path, "version = 1\n")
    deep = tmp_path / "a" / "b"
    deep.mkdir(parents=True)

    assert find_project_root(deep) == tmp_path.resolve()
    some_file = deep / "x.py"
    some_file.write_text("x=1\n", encoding="utf-8")
    assert find_project_root(some_file) == tmp_path.resolve()


def test_find_project_root_failure(tmp_path: Path) -> None:
    deep = tmp_path / "a" / "b"
    deep.mkdir(parents=True)
    with pytest.raises(FloodgateConfigError):
        find_project_root(deep)


def test_load_config_discovers_root_from_cwd(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write(tmp_path, "version = 1\n[window]\ncapacity = 7\n")
    sub = tmp_path / "sub"
    sub.mkdir()
    monkeypatch.chdir(sub)

    assert load_config().window.capacity == 7
