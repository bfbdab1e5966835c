"""Knapsack problem parameter validation module."""

from .params_rules import is_int, validate_params
from .types import InvalidReason, Rules, ValidationResult

__all__ = [
    "is_int",
    "validate_params",
    "Rules",
    "ValidationResult",
    "InvalidReason",
]
