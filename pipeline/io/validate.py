from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError
from jsonschema.validators import Draft202012Validator as Validator

REPO_ROOT = Path(__file__).resolve().parents[2]
SCHEMAS_ROOT = REPO_ROOT / "pipeline" / "schemas"

_CACHE: dict[Path, dict[str, Any]] = {}


def load_schema(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        schema = yaml.safe_load(f)
    Validator.check_schema(schema)
    return schema


def schema_by_name(name: str, *, schemas_root: Path | None = None) -> dict[str, Any]:
    path = (schemas_root or SCHEMAS_ROOT) / f"{name}.schema.yaml"
    if path not in _CACHE:
        _CACHE[path] = load_schema(path)
    return _CACHE[path]


def first_error(schema: dict[str, Any], obj: Any) -> str | None:
    """Return a one-line description of the first violation, or None."""
    err: ValidationError | None = next(iter(Validator(schema).iter_errors(obj)), None)
    if err is None:
        return None
    where = "/".join(str(p) for p in err.absolute_path) or "<root>"
    return f"{where}: {err.message}"
