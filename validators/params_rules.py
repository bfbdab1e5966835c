"""Core knapsack parameter validation rules."""

from __future__ import annotations

from typing import Any

from processes.solver.types import (
    OPTIONAL_ITEM_FIELDS,
    ProblemParameters,
    ProblemVariant,
    VariantShape,
)

from .types import InvalidReason, Rules, ValidationResult


def is_int(val: Any) -> bool:
    return isinstance(val, int) and not isinstance(val, bool)


class _Collector:
    def __init__(self) -> None:
        self.reasons: list[InvalidReason] = []
        self.messages: list[str] = []

    def add(self, reason: InvalidReason, message: str) -> None:
        self.reasons.append(reason)
        self.messages.append(message)

    def result(self) -> ValidationResult:
        return ValidationResult(
            valid=not self.reasons, reasons=self.reasons, messages=self.messages
        )


def _check_number(
    out: _Collector, label: str, name: str, val: Any, rules: Rules
) -> bool:
    if not is_int(val):
        out.add(InvalidReason.NOT_AN_INTEGER, f"{label} must be an integer, got {val!r}")
        return False
    if name in rules.positive_fields:
        if val < 1:
            out.add(InvalidReason.NON_POSITIVE_VALUE, f"{label} must be positive, got {val}")
            return False
    elif val < 0:
        out.add(InvalidReason.NEGATIVE_VALUE, f"{label} must be non-negative, got {val}")
        return False
    return True


def validate_params(
    variant: ProblemVariant,
    shape: VariantShape,
    params: ProblemParameters,
    rules: Rules | None = None,
) -> ValidationResult:
    """Validate knapsack parameters against a variant's field shape.

    Pure function with no I/O dependencies. All problems are collected so a
    caller sees every violation at once.

    Args:
        variant: Declared problem variant
        shape: Field shape for that variant
        params: Parameters supplied by the caller
        rules: Field-level rules (defaults to `Rules()`)

    Returns:
        ValidationResult with validation status and per-violation messages
    """
    rules = rules or Rules()
    out = _Collector()

    # Leading parameters
    if params.capacity is None:
        out.add(InvalidReason.MISSING_CAPACITY, "capacity is required")
    else:
        _check_number(out, "capacity", "capacity", params.capacity, rules)

    if params.k is not None and params.capacity2 is not None:
        out.add(
            InvalidReason.CONFLICTING_EXTRAS,
            "k and capacity2 cannot be combined in one request",
        )

    if shape.requires_capacity2:
        if params.capacity2 is None:
            out.add(InvalidReason.MISSING_CAPACITY2, f"capacity2 is required for {variant.value}")
        else:
            _check_number(out, "capacity2", "capacity2", params.capacity2, rules)
    elif params.capacity2 is not None:
        out.add(
            InvalidReason.UNEXPECTED_CAPACITY2,
            f"capacity2 is not accepted by {variant.value}",
        )

    if shape.requires_k:
        if params.k is None:
            out.add(InvalidReason.MISSING_K, f"k is required for {variant.value}")
        else:
            _check_number(out, "k", "k", params.k, rules)
    elif params.k is not None:
        out.add(InvalidReason.UNEXPECTED_K, f"k is not accepted by {variant.value}")

    # Items
    n = len(params.items)
    parents: dict[int, int] = {}
    for idx, item in enumerate(params.items, start=1):
        label = f"item {idx}"
        for name in shape.item_fields:
            val = getattr(item, name)
            if val is None:
                out.add(InvalidReason.MISSING_ITEM_FIELD, f"{label}: {name} is required")
                continue
            if not _check_number(out, f"{label}: {name}", name, val, rules):
                continue
            if name == "type" and val not in rules.mixed_types:
                out.add(
                    InvalidReason.INVALID_ITEM_TYPE,
                    f"{label}: type must be one of {list(rules.mixed_types)}, got {val}",
                )
            if name == "parent":
                if val > n:
                    out.add(
                        InvalidReason.PARENT_OUT_OF_RANGE,
                        f"{label}: parent {val} is outside 0..{n}",
                    )
                elif val == idx:
                    out.add(InvalidReason.SELF_PARENT, f"{label}: item cannot be its own parent")
                else:
                    parents[idx] = val

        for name in OPTIONAL_ITEM_FIELDS:
            if name not in shape.item_fields and getattr(item, name) is not None:
                out.add(
                    InvalidReason.UNEXPECTED_ITEM_FIELD,
                    f"{label}: {name} is not accepted by {variant.value}",
                )

    if variant is ProblemVariant.DEPENDENCY:
        for idx, parent in parents.items():
            if parent and parents.get(parent, 0) != 0:
                out.add(
                    InvalidReason.NESTED_ATTACHMENT,
                    f"item {idx}: parent {parent} is itself an attachment",
                )
    elif variant is ProblemVariant.TREE:
        cyclic = _find_cycle(parents)
        if cyclic:
            out.add(
                InvalidReason.CYCLIC_DEPENDENCY,
                f"items {cyclic} form a dependency cycle",
            )

    return out.result()


def _find_cycle(parents: dict[int, int]) -> list[int]:
    # 0 = done, 1 = on the current path
    state: dict[int, int] = {}
    for start in parents:
        path: list[int] = []
        node = start
        while node and node in parents and node not in state:
            state[node] = 1
            path.append(node)
            node = parents[node]
        if node in state and state[node] == 1:
            return sorted(path[path.index(node):])
        for p in path:
            state[p] = 0
    return []
