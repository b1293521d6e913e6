"""Configuration objects, lenient parameter parsing and YAML loading."""

from __future__ import annotations

import math
import sys
from dataclasses import asdict, dataclass, fields, replace
from itertools import product
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import numpy as np
import yaml

SCHEDULES = ("dynamic", "static", "sequential")
# escape times are stored in an int32 grid
MAX_ITER_LIMIT = int(np.iinfo(np.int32).max)


class ConfigError(ValueError):
    """Raised when a run cannot proceed with the resolved configuration."""


@dataclass(frozen=True)
class RunConfig:
    """Runtime configuration for a single Mandelbrot run."""

    width: int = 100
    height: int = 75
    png: bool = False  # plot-data output instead of ASCII art
    ll_x: float = -1.2
    ll_y: float = 0.20
    ur_x: float = -1.0
    ur_y: float = 0.35
    max_iter: int = 255
    threads: int = 9
    chunk_size: int = 1
    schedule: str = "dynamic"  # 'dynamic', 'static' or 'sequential'

    @property
    def total_chunks(self) -> int:
        return (self.height + self.chunk_size - 1) // self.chunk_size

    @property
    def run_name(self) -> str:
        """Generate unique run name embedding the execution parameters."""
        return (
            f"{self.schedule}_t{self.threads}_c{self.chunk_size}_"
            f"{self.width}x{self.height}_i{self.max_iter}"
        )

    @property
    def image_size(self) -> str:
        return f"{self.width}x{self.height}"

    def to_dict(self) -> dict:
        return asdict(self)

    def to_cli_args(self) -> List[str]:
        """Convert config to ``key=value`` CLI arguments."""
        return [f"{key}={_format_value(value)}" for key, value in self.to_dict().items()]

    def validate(self) -> "RunConfig":
        """Reject geometry the escape-time grid cannot be computed for."""
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(f"Image dimensions must be positive, got {self.image_size}")
        if self.ur_x <= self.ll_x or self.ur_y <= self.ll_y:
            raise ConfigError(
                "Degenerate viewport: upper-right "
                f"({self.ur_x}, {self.ur_y}) must exceed lower-left ({self.ll_x}, {self.ll_y})"
            )
        if not 0 < self.max_iter <= MAX_ITER_LIMIT:
            raise ConfigError(f"max_iter must be in [1, {MAX_ITER_LIMIT}], got {self.max_iter}")
        if self.threads <= 0 or self.chunk_size <= 0:
            raise ConfigError("threads and chunk_size must be positive")
        if self.schedule not in SCHEDULES:
            raise ConfigError(f"Unknown schedule {self.schedule!r}")
        return self


DEFAULT_RUN_CONFIG = RunConfig()

_FIELD_TYPES = {f.name: f.type for f in fields(RunConfig)}
_POSITIVE = {"width", "height", "max_iter", "threads", "chunk_size"}


def default_run_config(**overrides: object) -> RunConfig:
    """Return the canonical default config optionally overridden with kwargs."""
    return replace(DEFAULT_RUN_CONFIG, **_coerce_dimensions(overrides))


def parse_params(args: Iterable[str], base: RunConfig | None = None) -> RunConfig:
    """Apply ``key=value`` arguments on top of ``base``.

    Invalid arguments are reported on stderr and skipped; the corresponding
    setting keeps its previous value.
    """
    overrides: Dict[str, object] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep:
            _warn(f"Ignoring invalid argument '{arg}'")
            continue
        _apply_setting(overrides, key.strip(), value.strip())
    return replace(base or DEFAULT_RUN_CONFIG, **overrides)


def load_config_file(yaml_path: str | Path, base: RunConfig | None = None) -> RunConfig:
    """Load run settings from a YAML mapping, leniently."""
    data = _read_yaml(yaml_path)
    if not isinstance(data, dict):
        raise ConfigError(f"{yaml_path} must contain a mapping of run settings")
    return _build_run_config(data, base)


def load_sweep_configs(yaml_path: str | Path) -> List[RunConfig]:
    """Load YAML config and generate all parameter sweep combinations.

    Supports a top-level ``sweep`` as well as the suite format that nests
    multiple experiments under ``experiments``.
    """
    return [config for _, configs in load_named_sweep_configs(yaml_path) for config in configs]


def load_named_sweep_configs(
    yaml_path: str | Path,
    suite: str | None = None,
) -> List[tuple[str, List[RunConfig]]]:
    cfg = _read_yaml(yaml_path) or {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"{yaml_path} must contain a mapping")

    defaults: Dict[str, object] = cfg.get("defaults", {}) or {}
    experiments = cfg.get("experiments")
    results: List[tuple[str, List[RunConfig]]] = []

    if experiments:
        if not isinstance(experiments, list):
            raise ConfigError(f"'experiments' in {yaml_path} must be a list")
        for exp in experiments:
            if not isinstance(exp, dict):
                raise ConfigError(f"Experiment entries in {yaml_path} must be mappings, got {exp!r}")
            name = exp.get("name")
            if not name:
                continue
            if suite and name != suite:
                continue
            sweep = exp.get("sweep") or {}
            exp_defaults = {**defaults, **(exp.get("defaults", {}) or {})}
            results.append((name, _expand_sweep(exp_defaults, sweep)))
        if suite and not results:
            raise ConfigError(f"Suite '{suite}' not found in {yaml_path}")
        return results

    if suite:
        raise ConfigError(f"Suite '{suite}' not found in {yaml_path}")
    sweep: Dict[str, object] = cfg.get("sweep", {}) or {}
    label = cfg.get("name") or Path(yaml_path).stem
    return [(label, _expand_sweep(defaults, sweep))]


def parse_image_size(value: str) -> Tuple[int, int]:
    width_str, height_str = value.lower().split("x")
    return int(width_str.strip()), int(height_str.strip())


def _warn(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


def _read_yaml(yaml_path: str | Path) -> object:
    try:
        with open(yaml_path) as f:
            return yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read {yaml_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed YAML in {yaml_path}: {exc}") from exc


def _apply_setting(target: Dict[str, object], key: str, raw: object) -> None:
    """Parse one setting into ``target``, warning instead of failing."""
    if key in {"image_size", "image_shape"}:
        try:
            width, height = _normalize_shape_entry(raw)
        except (TypeError, ValueError) as exc:
            _warn(f"Invalid value for '{key}': '{raw}' ({exc})")
            return
        _apply_setting(target, "width", width)
        _apply_setting(target, "height", height)
        return
    if key not in _FIELD_TYPES:
        _warn(f"Unknown parameter '{key}'")
        return
    try:
        target[key] = _parse_value(key, raw)
    except (TypeError, ValueError) as exc:
        _warn(f"Invalid value for '{key}': '{raw}' ({exc})")


def _parse_value(key: str, raw: object) -> object:
    kind = _FIELD_TYPES[key]
    if kind == "bool":
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in {"true", "yes", "on"}:
            return True
        if text in {"false", "no", "off"}:
            return False
        return int(text) != 0
    if kind == "int":
        if isinstance(raw, bool):
            raise ValueError("expected an integer, got a boolean")
        if isinstance(raw, float) and not raw.is_integer():
            raise ValueError("expected an integer")
        value = int(raw) if not isinstance(raw, str) else int(raw.strip())
        if key in _POSITIVE and value <= 0:
            raise ValueError("must be positive")
        if key == "max_iter" and value > MAX_ITER_LIMIT:
            raise ValueError(f"must not exceed {MAX_ITER_LIMIT}")
        return value
    if kind == "float":
        value = float(raw)
        if not math.isfinite(value):
            raise ValueError("must be finite")
        return value
    value = str(raw).strip().lower()
    if key == "schedule" and value not in SCHEDULES:
        raise ValueError(f"expected one of {', '.join(SCHEDULES)}")
    return value


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return str(int(value))
    return str(value)


def _build_run_config(raw_data: Dict[str, object], base: RunConfig | None = None) -> RunConfig:
    overrides: Dict[str, object] = {}
    for key, value in raw_data.items():
        _apply_setting(overrides, str(key), value)
    return replace(base or DEFAULT_RUN_CONFIG, **overrides)


def _expand_sweep(defaults: Dict[str, object], sweep: Dict[str, object]) -> List[RunConfig]:
    """Expand sweep definition into RunConfig instances."""
    param_grid = {k: _as_list(v) for k, v in sweep.items()}
    keys = list(param_grid.keys())
    if not keys:
        return [_build_run_config(defaults)]

    configs: List[RunConfig] = []
    for combo in product(*[param_grid[k] for k in keys]):
        data = {**defaults, **dict(zip(keys, combo))}
        configs.append(_build_run_config(data))
    return configs


def _as_list(value: object) -> List[object]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _coerce_dimensions(data: Dict[str, object]) -> Dict[str, object]:
    result = dict(data)
    image = result.pop("image_size", None)
    if image is not None:
        width, height = _normalize_shape_entry(image)
        result.setdefault("width", width)
        result.setdefault("height", height)
    if "width" in result:
        result["width"] = int(result["width"])
    if "height" in result:
        result["height"] = int(result["height"])
    return result


def _normalize_shape_entry(entry: object) -> Tuple[int, int]:
    if isinstance(entry, dict):
        width = entry.get("width")
        height = entry.get("height")
        if width is None or height is None:
            raise ValueError("image_shape dict must include 'width' and 'height'")
        return int(width), int(height)
    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        return int(entry[0]), int(entry[1])
    if isinstance(entry, str):
        return parse_image_size(entry)
    raise ValueError(f"Unsupported image shape specification: {entry!r}")
