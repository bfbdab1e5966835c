from __future__ import annotations

import json
import logging
import time
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from processes.api.models import (
    AlgorithmInfo,
    AlgorithmsResponse,
    HealthResponse,
    RunAlgorithmRequest,
    RunAlgorithmResponse,
)
from processes.solver import adapter as solver
from processes.solver.config import SolverSettings, load_settings
from processes.solver.types import VARIANT_SHAPES

app = FastAPI(title="Knapsack Solver Shell", version="0.1.0")

logger = logging.getLogger("processes.api")

# Tests may replace this with fixed settings
_SETTINGS: SolverSettings | None = None


def get_settings() -> SolverSettings:
    return _SETTINGS if _SETTINGS is not None else load_settings()


@app.get("/health", response_model=HealthResponse)  # type: ignore[misc]
def health() -> HealthResponse:
    t0 = time.time()
    logger.info(json.dumps({"event": "api_enter", "endpoint": "/health"}))
    out = HealthResponse(ok=True, version="0.1.0", time=datetime.now(UTC).isoformat())
    dt = time.time() - t0
    logger.info(json.dumps({"event": "api_exit", "endpoint": "/health", "dt_s": round(dt, 6)}))
    return out


@app.get("/algorithms", response_model=AlgorithmsResponse)  # type: ignore[misc]
def list_algorithms() -> AlgorithmsResponse:
    """List solver identifiers with their item token fields and leading extras."""
    rows = [
        AlgorithmInfo(
            algorithm=variant.value,
            item_fields=list(shape.item_fields),
            extras=list(shape.extras),
        )
        for variant, shape in VARIANT_SHAPES.items()
    ]
    return AlgorithmsResponse(algorithms=rows)


@app.post(
    "/run-algorithm",
    response_model=RunAlgorithmResponse,
)  # type: ignore[misc]
async def run_algorithm(req: RunAlgorithmRequest) -> JSONResponse:
    """Run one solver and return the `{success, data | error}` envelope.

    Solver and parameter failures are reported in the envelope with HTTP 200;
    only unexpected internal errors produce a 500.
    """
    t0 = time.time()
    items = req.params.get("items")
    logger.info(
        json.dumps(
            {
                "event": "api_enter",
                "endpoint": "/run-algorithm",
                "algorithm": req.algorithm,
                "item_count": len(items) if isinstance(items, list) else None,
            }
        )
    )
    try:
        envelope = await solver.run_algorithm(req.algorithm, req.params, get_settings())
    except Exception as e:
        dt = time.time() - t0
        logger.error(
            json.dumps(
                {
                    "event": "api_error",
                    "endpoint": "/run-algorithm",
                    "dt_s": round(dt, 6),
                    "error": str(e),
                }
            )
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": f"internal error: {e}"},
        )
    dt = time.time() - t0
    logger.info(
        json.dumps(
            {
                "event": "api_exit",
                "endpoint": "/run-algorithm",
                "dt_s": round(dt, 6),
                "success": envelope["success"],
            }
        )
    )
    return JSONResponse(content=envelope)
