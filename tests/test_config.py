from __future__ import annotations

from pathlib import Path

import pytest

from clusterretry.config import (
    MAX_RETRIES_ENV,
    RETRY_INTERVAL_ENV,
    ClusterOptions,
    build_options,
    load_config,
    save_config,
)
from clusterretry.errors import ClusterRetryError, ExitCode


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch) -> None:
    monkeypatch.delenv(MAX_RETRIES_ENV, raising=False)
    monkeypatch.delenv(RETRY_INTERVAL_ENV, raising=False)


def test_load_defaults_when_config_missing(tmp_path: Path) -> None:
    options = load_config(tmp_path / "config.toml")

    assert options.seeds == []
    assert options.max_retries is None
    assert options.retry_interval == 0.25
    assert options.effective_max_retries == 0


def test_config_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    original = ClusterOptions(seeds=["db1:27017", "db2:27017"], max_retries=5, retry_interval=0.5)

    save_config(original, path)
    loaded = load_config(path)

    assert loaded == original


def test_roundtrip_without_max_retries_keeps_seed_count_default(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    save_config(ClusterOptions(seeds=["a:1", "b:2"]), path)

    loaded = load_config(path)

    assert loaded.max_retries is None
    assert loaded.effective_max_retries == 2


def test_invalid_toml_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("seeds = [", encoding="utf-8")

    assert load_config(path) == ClusterOptions()


def test_invalid_values_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        'seeds = ["db1:27017", 5, " "]\nmax_retries = -1\nretry_interval = "slow"\n',
        encoding="utf-8",
    )

    options = load_config(path)

    assert options.seeds == ["db1:27017"]
    assert options.max_retries is None
    assert options.retry_interval == 0.25


def test_seeds_are_stripped_and_deduplicated() -> None:
    options = ClusterOptions(seeds=[" db1:27017", "db1:27017 ", "db2:27017"])

    assert options.seeds == ["db1:27017", "db2:27017"]


def test_negative_values_are_rejected() -> None:
    with pytest.raises(ClusterRetryError) as excinfo:
        build_options(max_retries=-1)

    assert excinfo.value.code == ExitCode.CONFIG_ERROR


def test_validate_assignment_rejects_negative_interval() -> None:
    options = ClusterOptions()

    with pytest.raises(ValueError):
        options.retry_interval = -0.1


def test_environment_overrides_file_values(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "config.toml"
    save_config(ClusterOptions(seeds=["db1:27017"], max_retries=5, retry_interval=1.0), path)
    monkeypatch.setenv(MAX_RETRIES_ENV, "2")
    monkeypatch.setenv(RETRY_INTERVAL_ENV, "0.05")

    options = load_config(path)

    assert options.max_retries == 2
    assert options.retry_interval == 0.05


def test_invalid_environment_override_raises_config_error(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv(MAX_RETRIES_ENV, "many")

    with pytest.raises(ClusterRetryError) as excinfo:
        load_config(tmp_path / "config.toml")

    assert excinfo.value.code == ExitCode.CONFIG_ERROR
    assert MAX_RETRIES_ENV in excinfo.value.hint


@pytest.mark.parametrize("raw", ["nan", "inf", "-inf"])
def test_non_finite_interval_override_raises_config_error(
    raw: str, tmp_path: Path, monkeypatch
) -> None:
    monkeypatch.setenv(RETRY_INTERVAL_ENV, raw)

    with pytest.raises(ClusterRetryError) as excinfo:
        load_config(tmp_path / "config.toml")

    assert excinfo.value.code == ExitCode.CONFIG_ERROR


@pytest.mark.parametrize("value", ["inf", "nan"])
def test_non_finite_interval_in_file_is_ignored(value: str, tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(f'seeds = ["db1:27017"]\nretry_interval = {value}\n', encoding="utf-8")

    options = load_config(path)

    assert options.retry_interval == 0.25


@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_build_options_rejects_non_finite_interval(value: float) -> None:
    with pytest.raises(ClusterRetryError) as excinfo:
        build_options(retry_interval=value)

    assert excinfo.value.code == ExitCode.CONFIG_ERROR
