"""Cluster retry options loading/saving."""

from __future__ import annotations

import math
import os
import sys
from contextlib import suppress
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from clusterretry.errors import ClusterRetryError, ExitCode

DEFAULT_CONFIG_PATH = Path("~/.config/clusterretry/config.toml").expanduser()
DEFAULT_RETRY_INTERVAL = 0.25
MAX_RETRIES_ENV = "CLUSTERRETRY_MAX_RETRIES"
RETRY_INTERVAL_ENV = "CLUSTERRETRY_RETRY_INTERVAL"


class ClusterOptions(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    seeds: list[str] = Field(default_factory=list)
    max_retries: int | None = Field(default=None, ge=0)
    retry_interval: float = Field(default=DEFAULT_RETRY_INTERVAL, ge=0, allow_inf_nan=False)

    @field_validator("seeds")
    @classmethod
    def _validate_seeds(cls, value: list[str]) -> list[str]:
        normalized: list[str] = []
        for seed in value:
            address = seed.strip()
            if not address:
                raise ValueError("Seed address cannot be empty")
            if address not in normalized:
                normalized.append(address)
        return normalized

    @property
    def effective_max_retries(self) -> int:
        if self.max_retries is None:
            return len(self.seeds)
        return self.max_retries


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    if isinstance(value, list):
        return "[" + ", ".join(_toml_scalar(item) for item in value) + "]"
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def _env_override(name: str, parse: type[int] | type[float]) -> int | float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = parse(raw)
    except ValueError as exc:
        raise ClusterRetryError(
            f"Invalid value for {name}: {raw!r}",
            code=ExitCode.CONFIG_ERROR,
            hint=f"{name} must be a finite, non-negative number.",
        ) from exc
    if not math.isfinite(value) or value < 0:
        raise ClusterRetryError(
            f"Invalid value for {name}: {raw!r}",
            code=ExitCode.CONFIG_ERROR,
            hint=f"{name} must be a finite, non-negative number.",
        )
    return value


def _sanitize(raw: dict[str, object]) -> ClusterOptions:
    options = ClusterOptions()

    seeds = raw.get("seeds", [])
    if isinstance(seeds, list):
        valid_seeds = [item for item in seeds if isinstance(item, str) and item.strip()]
        options.seeds = valid_seeds

    max_retries = raw.get("max_retries")
    if isinstance(max_retries, int) and not isinstance(max_retries, bool) and max_retries >= 0:
        options.max_retries = max_retries

    retry_interval = raw.get("retry_interval", options.retry_interval)
    if (
        isinstance(retry_interval, (int, float))
        and not isinstance(retry_interval, bool)
        and math.isfinite(retry_interval)
        and retry_interval >= 0
    ):
        options.retry_interval = float(retry_interval)

    env_retries = _env_override(MAX_RETRIES_ENV, int)
    if env_retries is not None:
        options.max_retries = int(env_retries)
    env_interval = _env_override(RETRY_INTERVAL_ENV, float)
    if env_interval is not None:
        options.retry_interval = float(env_interval)

    return options


def load_config(path: str | Path | None = None) -> ClusterOptions:
    resolved = get_config_path(path)
    raw: object = {}
    if resolved.exists():
        try:
            with resolved.open("rb") as handle:
                raw = tomllib.load(handle)
        except (tomllib.TOMLDecodeError, OSError):
            raw = {}
    if not isinstance(raw, dict):
        raw = {}
    return _sanitize(raw)


def build_options(**values: object) -> ClusterOptions:
    try:
        return ClusterOptions(**values)
    except ValidationError as exc:
        raise ClusterRetryError(
            "Invalid cluster options.",
            code=ExitCode.CONFIG_ERROR,
            hint=str(exc.errors()[0]["msg"]),
        ) from exc


def save_config(options: ClusterOptions, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        f"seeds = {_toml_scalar(list(options.seeds))}",
        f"retry_interval = {_toml_scalar(float(options.retry_interval))}",
    ]
    if options.max_retries is not None:
        lines.append(f"max_retries = {_toml_scalar(options.max_retries)}")

    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved
