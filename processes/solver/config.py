from __future__ import annotations

import json
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from .types import ProblemVariant

# Resolve repo root (two levels up from this file)
REPO_ROOT = Path(__file__).resolve().parents[2]

MODE_DEVELOPMENT = "development"
MODE_PACKAGED = "packaged"

ENV_KEYS = {
    "mode": "KNAPSACK_SOLVER_MODE",
    "dev_root": "KNAPSACK_SOLVER_DEV_ROOT",
    "resources_path": "KNAPSACK_RESOURCES_PATH",
    "exe_suffix": "KNAPSACK_SOLVER_SUFFIX",
    "timeout_s": "KNAPSACK_SOLVER_TIMEOUT",
}


def _default_suffix() -> str:
    return ".exe" if os.name == "nt" else ""


def _default_resources_path() -> Path:
    return Path(sys.executable).resolve().parent / "resources"


@dataclass(frozen=True)
class SolverSettings:
    mode: str = MODE_DEVELOPMENT
    # development: binaries live directly under dev_root
    dev_root: Path = REPO_ROOT / "cpp"
    # packaged: binaries live under <resources_path>/cpp
    resources_path: Path | None = None
    exe_suffix: str | None = None
    timeout_s: float | None = None

    def __post_init__(self) -> None:
        if self.mode not in (MODE_DEVELOPMENT, MODE_PACKAGED):
            raise ValueError(
                f"Unsupported solver mode '{self.mode}'. Expected '{MODE_DEVELOPMENT}' or '{MODE_PACKAGED}'."
            )

    @property
    def suffix(self) -> str:
        return _default_suffix() if self.exe_suffix is None else self.exe_suffix

    @property
    def solver_dir(self) -> Path:
        if self.mode == MODE_PACKAGED:
            return (self.resources_path or _default_resources_path()) / "cpp"
        return self.dev_root


def resolve_solver_path(
    algorithm: str | ProblemVariant, settings: SolverSettings
) -> Path:
    """Path of the solver executable; existence is not checked here."""
    name = algorithm.value if isinstance(algorithm, ProblemVariant) else str(algorithm)
    return settings.solver_dir / f"{name}{settings.suffix}"


def _coerce_scalar(val: str) -> int | float | bool | str:
    lower = val.lower()
    if lower in ("true", "false"):
        return lower == "true"
    try:
        if "." in val:
            return float(val)
        return int(val)
    except ValueError:
        return val


def _coerce_timeout(val: Any) -> float | None:
    if val is None or val == "":
        return None
    t = float(val)
    return t if t > 0 else None


def _normalize(raw: Mapping[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(SolverSettings)}
    out: dict[str, Any] = {}
    for k, v in raw.items():
        if k not in known:
            continue
        if k in ("dev_root", "resources_path"):
            out[k] = Path(str(v)) if v not in (None, "") else None
        elif k == "timeout_s":
            out[k] = _coerce_timeout(v)
        elif k in ("mode", "exe_suffix"):
            out[k] = None if v is None else str(v)
        else:
            out[k] = v
    if out.get("dev_root") is None:
        out.pop("dev_root", None)
    if out.get("mode") is None:
        out.pop("mode", None)
    return out


def settings_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    env = os.environ if environ is None else environ
    raw: dict[str, Any] = {}
    for key, var in ENV_KEYS.items():
        if var in env:
            raw[key] = env[var]
    return raw


def load_config(
    config_path: Path | None, inline_kv: Sequence[str] | None = None
) -> dict[str, Any]:
    cfg: dict[str, Any] = {}
    if config_path:
        text = config_path.read_text(encoding="utf-8")
        if config_path.suffix.lower() in (".yaml", ".yml"):
            import yaml  # lazy

            cfg = dict(yaml.safe_load(text) or {})
        else:
            cfg = dict(json.loads(text))
    if inline_kv:
        for item in inline_kv:
            if "=" not in item:
                continue
            k, v = item.split("=", 1)
            cfg[k.strip()] = _coerce_scalar(v.strip())
    return cfg


def load_settings(
    config_path: Path | None = None,
    config_kv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> SolverSettings:
    """Build settings from defaults <- env <- config file/inline kv <- overrides."""
    merged: dict[str, Any] = {}
    merged.update(settings_from_env(environ))
    merged.update(load_config(config_path, config_kv))
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return replace(SolverSettings(), **_normalize(merged))
