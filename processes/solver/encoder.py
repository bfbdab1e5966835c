"""Request encoder: typed knapsack parameters -> solver argument vector.

Layout expected by every solver executable:

    [capacity, (k)?, (capacity2)?, item_count, item_1, ..., item_n]

where each item token is its shape's fields joined by commas.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from validators import validate_params

from .types import (
    VARIANT_SHAPES,
    EncodingError,
    Item,
    ProblemParameters,
    ProblemVariant,
    VariantShape,
)


def resolve_variant(algorithm: str | ProblemVariant) -> ProblemVariant:
    if isinstance(algorithm, ProblemVariant):
        return algorithm
    try:
        return ProblemVariant(str(algorithm))
    except ValueError:
        known = ", ".join(v.value for v in ProblemVariant)
        raise EncodingError(
            f"Unknown algorithm '{algorithm}'. Expected one of: {known}",
            details={"algorithm": str(algorithm)},
        ) from None


def shape_for(variant: ProblemVariant) -> VariantShape:
    return VARIANT_SHAPES[variant]


def encode_item(item: Item, shape: VariantShape) -> str:
    return ",".join(str(getattr(item, name)) for name in shape.item_fields)


def encode_request(
    algorithm: str | ProblemVariant,
    params: ProblemParameters | Mapping[str, Any],
) -> list[str]:
    """Encode parameters into the positional argument vector for a solver.

    Raises EncodingError when the parameters do not match the variant's
    shape; nothing is spawned in that case.
    """
    variant = resolve_variant(algorithm)
    if not isinstance(params, ProblemParameters):
        if not isinstance(params, Mapping):
            raise EncodingError(f"Invalid parameters for {variant.value}: params must be an object")
        try:
            params = ProblemParameters.from_dict(dict(params))
        except ValueError as e:
            raise EncodingError(f"Invalid parameters for {variant.value}: {e}") from e
    shape = shape_for(variant)

    result = validate_params(variant, shape, params)
    if not result.valid:
        raise EncodingError(
            f"Invalid parameters for {variant.value}: " + "; ".join(result.messages),
            details={
                "algorithm": variant.value,
                "reasons": [r.value for r in result.reasons],
            },
        )

    args = [str(params.capacity)]
    if shape.requires_k:
        args.append(str(params.k))
    if shape.requires_capacity2:
        args.append(str(params.capacity2))
    args.append(str(len(params.items)))
    args.extend(encode_item(item, shape) for item in params.items)
    return args
