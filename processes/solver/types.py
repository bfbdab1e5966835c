from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCodes(str, Enum):
    ENCODING_ERROR = "ENCODING_ERROR"
    LAUNCH_ERROR = "LAUNCH_ERROR"
    PROCESS_ERROR = "PROCESS_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    SOLVER_TIMEOUT = "SOLVER_TIMEOUT"


class SolverError(Exception):
    def __init__(
        self,
        code: ErrorCodes,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


class EncodingError(SolverError):
    """Parameters are inconsistent with the declared variant."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCodes.ENCODING_ERROR, message, details)


class ProblemVariant(str, Enum):
    """Knapsack families; the value is the solver executable stem."""

    ZERO_ONE = "knapsack_01"
    COMPLETE = "knapsack_complete"
    MULTIPLE = "knapsack_multiple"
    MIXED = "knapsack_mixed"
    TWO_DIMENSIONAL = "knapsack_2d"
    GROUP = "knapsack_group"
    DEPENDENCY = "knapsack_depend"
    TREE = "knapsack_tree"
    KTH_OPTIMAL = "knapsack_kth"
    COUNT = "knapsack_count"


# Optional item fields; weight and value are always required
OPTIONAL_ITEM_FIELDS = ("volume", "count", "type", "group", "parent")

# Mixed item types
MIXED_ZERO_ONE = 0
MIXED_COMPLETE = 1
MIXED_MULTIPLE = 2


@dataclass(frozen=True)
class VariantShape:
    # ordered token fields for each item
    item_fields: tuple[str, ...]
    requires_k: bool = False
    requires_capacity2: bool = False

    @property
    def extras(self) -> tuple[str, ...]:
        out: list[str] = []
        if self.requires_k:
            out.append("k")
        if self.requires_capacity2:
            out.append("capacity2")
        return tuple(out)


VARIANT_SHAPES: dict[ProblemVariant, VariantShape] = {
    ProblemVariant.ZERO_ONE: VariantShape(("weight", "value")),
    ProblemVariant.COMPLETE: VariantShape(("weight", "value")),
    ProblemVariant.MULTIPLE: VariantShape(("weight", "value", "count")),
    ProblemVariant.MIXED: VariantShape(("weight", "value", "type")),
    ProblemVariant.TWO_DIMENSIONAL: VariantShape(
        ("weight", "volume", "value"), requires_capacity2=True
    ),
    ProblemVariant.GROUP: VariantShape(("weight", "value", "group")),
    ProblemVariant.DEPENDENCY: VariantShape(("weight", "value", "parent")),
    ProblemVariant.TREE: VariantShape(("weight", "value", "parent")),
    ProblemVariant.KTH_OPTIMAL: VariantShape(("weight", "value"), requires_k=True),
    ProblemVariant.COUNT: VariantShape(("weight", "value")),
}


@dataclass(frozen=True)
class Item:
    """One item row. Values are not checked here; see `validators.validate_params`."""

    weight: int
    value: int
    volume: int | None = None
    count: int | None = None
    type: int | None = None
    group: int | None = None
    # 0 = main/root item, otherwise 1-based index of the prerequisite
    parent: int | None = None

    def populated(self) -> tuple[str, ...]:
        return tuple(f for f in OPTIONAL_ITEM_FIELDS if getattr(self, f) is not None)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Item:
        return cls(
            weight=d.get("weight"),
            value=d.get("value"),
            **{k: d.get(k) for k in OPTIONAL_ITEM_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"weight": self.weight, "value": self.value}
        for k in self.populated():
            d[k] = getattr(self, k)
        return d


@dataclass(frozen=True)
class ProblemParameters:
    capacity: int | None
    items: tuple[Item, ...] = field(default_factory=tuple)
    capacity2: int | None = None
    k: int | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ProblemParameters:
        raw_items = d.get("items")
        if raw_items is None:
            raw_items = []
        if not isinstance(raw_items, list | tuple):
            raise ValueError("items must be a list")
        items: list[Item] = []
        for i, it in enumerate(raw_items, start=1):
            if not isinstance(it, dict):
                raise ValueError(f"item {i} must be an object")
            items.append(Item.from_dict(it))
        return cls(
            capacity=d.get("capacity"),
            items=tuple(items),
            capacity2=d.get("capacity2"),
            k=d.get("k"),
        )


@dataclass
class InvocationResult:
    ok: bool
    data: Any = None
    code: ErrorCodes | None = None
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, data: Any) -> InvocationResult:
        return cls(ok=True, data=data)

    @classmethod
    def failure(
        cls, code: ErrorCodes, message: str, details: dict[str, Any] | None = None
    ) -> InvocationResult:
        return cls(ok=False, code=code, message=message, details=details or {})

    @classmethod
    def from_error(cls, err: SolverError) -> InvocationResult:
        return cls.failure(err.code, err.message, err.details)

    def to_envelope(self) -> dict[str, Any]:
        if self.ok:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.message or str(self.code)}
