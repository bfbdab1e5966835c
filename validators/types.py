"""Types and models for problem parameter validation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from processes.solver.types import MIXED_COMPLETE, MIXED_MULTIPLE, MIXED_ZERO_ONE


class InvalidReason(Enum):
    """Enumerated error codes for parameter validation failures."""

    MISSING_CAPACITY = "missing_capacity"
    MISSING_CAPACITY2 = "missing_capacity2"
    MISSING_K = "missing_k"
    UNEXPECTED_CAPACITY2 = "unexpected_capacity2"
    UNEXPECTED_K = "unexpected_k"
    CONFLICTING_EXTRAS = "conflicting_extras"
    MISSING_ITEM_FIELD = "missing_item_field"
    UNEXPECTED_ITEM_FIELD = "unexpected_item_field"
    NOT_AN_INTEGER = "not_an_integer"
    NEGATIVE_VALUE = "negative_value"
    NON_POSITIVE_VALUE = "non_positive_value"
    INVALID_ITEM_TYPE = "invalid_item_type"
    PARENT_OUT_OF_RANGE = "parent_out_of_range"
    SELF_PARENT = "self_parent"
    NESTED_ATTACHMENT = "nested_attachment"
    CYCLIC_DEPENDENCY = "cyclic_dependency"


@dataclass
class Rules:
    """Field-level rules applied to every variant."""

    # fields that must be >= 1 rather than >= 0
    positive_fields: tuple[str, ...] = None  # type: ignore[assignment]
    # allowed values of the Mixed `type` field
    mixed_types: tuple[int, ...] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.positive_fields is None:
            self.positive_fields = ("count", "k")
        if self.mixed_types is None:
            self.mixed_types = (MIXED_ZERO_ONE, MIXED_COMPLETE, MIXED_MULTIPLE)


@dataclass
class ValidationResult:
    """Result of parameter validation with detailed diagnostics."""

    valid: bool
    reasons: list[InvalidReason] = None  # type: ignore[assignment]
    messages: list[str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.reasons is None:
            self.reasons = []
        if self.messages is None:
            self.messages = []
