from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from pipeline.io.validate import first_error, schema_by_name

from .config import SolverSettings, load_config, load_settings, resolve_solver_path
from .encoder import encode_request, resolve_variant
from .types import (
    EncodingError,
    ErrorCodes,
    InvocationResult,
    ProblemParameters,
    ProblemVariant,
)

logger = logging.getLogger("processes.solver")


class SolverProcess:
    """One solver child process plus its stdout/stderr buffers.

    Use as an async context manager; leaving the block always reaps the
    child, killing it first if it has not exited (timeout, cancellation).
    """

    def __init__(self, exe_path: Path, args: Sequence[str]) -> None:
        self.exe_path = exe_path
        self.args = [str(a) for a in args]
        self.proc: asyncio.subprocess.Process | None = None
        self.stdout = b""
        self.stderr = b""
        self.returncode: int | None = None

    async def __aenter__(self) -> SolverProcess:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def start(self) -> None:
        # exec, never a shell: tokens reach argv untouched
        self.proc = await asyncio.create_subprocess_exec(
            str(self.exe_path),
            *self.args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

    async def communicate(self, timeout: float | None = None) -> int:
        """Drain both streams to EOF and wait for exit."""
        if self.proc is None:
            raise RuntimeError("solver process not started")
        if timeout is None:
            out, err = await self.proc.communicate()
        else:
            out, err = await asyncio.wait_for(self.proc.communicate(), timeout)
        self.stdout = out or b""
        self.stderr = err or b""
        self.returncode = self.proc.returncode
        return int(self.returncode or 0)

    async def close(self) -> None:
        proc, self.proc = self.proc, None
        if proc is None:
            return
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()


def _text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def decode_output(returncode: int, stdout: bytes, stderr: bytes) -> InvocationResult:
    """Classify a finished solver run. Non-zero exit wins over output parsing."""
    out = _text(stdout)
    err = _text(stderr)
    if returncode != 0:
        return InvocationResult.failure(
            ErrorCodes.PROCESS_ERROR,
            f"Process exit code: {returncode}\nError: {err}\nOutput: {out}",
            details={"returncode": returncode, "stderr": err, "stdout": out},
        )
    try:
        data = json.loads(out)
    except json.JSONDecodeError as e:
        return InvocationResult.failure(
            ErrorCodes.PARSE_ERROR,
            f"JSON parsing failed: {e}\nOutput: {out}",
            details={"stdout": out, "stderr": err},
        )
    problem = first_error(schema_by_name("solver_result"), data)
    if problem is not None:
        return InvocationResult.failure(
            ErrorCodes.PARSE_ERROR,
            f"JSON parsing failed: unexpected result document ({problem})\nOutput: {out}",
            details={"stdout": out, "stderr": err},
        )
    return InvocationResult.success(data)


async def invoke_solver(
    algorithm: str | ProblemVariant,
    args: Sequence[str],
    settings: SolverSettings,
) -> InvocationResult:
    """Run one solver to completion and classify the outcome."""
    exe_path = resolve_solver_path(algorithm, settings)
    name = algorithm.value if isinstance(algorithm, ProblemVariant) else str(algorithm)
    t0 = time.time()
    logger.info(
        json.dumps(
            {
                "event": "solver_enter",
                "algorithm": name,
                "exe_path": str(exe_path),
                "args": list(args),
            }
        )
    )

    async with SolverProcess(exe_path, args) as sp:
        try:
            await sp.start()
        except OSError as e:
            result = InvocationResult.failure(
                ErrorCodes.LAUNCH_ERROR,
                f"Failed to start: {e}\nPlease ensure compiled: {exe_path}",
                details={"exe_path": str(exe_path), "os_error": str(e)},
            )
        else:
            try:
                await sp.communicate(settings.timeout_s)
            except asyncio.TimeoutError:
                result = InvocationResult.failure(
                    ErrorCodes.SOLVER_TIMEOUT,
                    f"Solver timed out after {settings.timeout_s}s: {exe_path}",
                    details={"exe_path": str(exe_path), "timeout_s": settings.timeout_s},
                )
            else:
                result = decode_output(int(sp.returncode or 0), sp.stdout, sp.stderr)

    dt = time.time() - t0
    if result.ok:
        logger.info(
            json.dumps(
                {
                    "event": "solver_exit",
                    "algorithm": name,
                    "dt_s": round(dt, 6),
                    "outcome": "success",
                    "returncode": 0,
                }
            )
        )
    else:
        logger.error(
            json.dumps(
                {
                    "event": "solver_error",
                    "algorithm": name,
                    "dt_s": round(dt, 6),
                    "outcome": result.code.value if result.code else None,
                    "returncode": result.details.get("returncode"),
                    "error": result.message,
                }
            )
        )
    return result


async def solve(
    algorithm: str | ProblemVariant,
    params: ProblemParameters | Mapping[str, Any],
    settings: SolverSettings | None = None,
) -> InvocationResult:
    """Encode, invoke and decode; caller errors never spawn a process."""
    try:
        variant = resolve_variant(algorithm)
        args = encode_request(variant, params)
    except EncodingError as e:
        logger.error(
            json.dumps(
                {
                    "event": "solver_error",
                    "algorithm": str(getattr(algorithm, "value", algorithm)),
                    "outcome": e.code.value,
                    "error": e.message,
                }
            )
        )
        return InvocationResult.from_error(e)
    return await invoke_solver(variant, args, settings or load_settings())


async def run_algorithm(
    algorithm: str | ProblemVariant,
    params: ProblemParameters | Mapping[str, Any],
    settings: SolverSettings | None = None,
) -> dict[str, Any]:
    """Return `{"success": True, "data": ...}` or `{"success": False, "error": ...}`."""
    result = await solve(algorithm, params, settings)
    return result.to_envelope()


def _load_request(path: Path) -> dict[str, Any]:
    try:
        req = load_config(path)
    except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
        raise ValueError(f"Invalid request file {path}: {e}") from e
    problem = first_error(schema_by_name("run_request"), req)
    if problem is not None:
        raise ValueError(f"Invalid request file {path}: {problem}")
    return req


def _params_from_args(args: argparse.Namespace) -> ProblemParameters:
    from pipeline.ingest.items import load_items  # lazy: pulls pandas

    items = load_items(args.items) if args.items else []
    return ProblemParameters(
        capacity=args.capacity,
        items=tuple(items),
        capacity2=args.capacity2,
        k=args.k,
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="python -m processes.solver")
    p.add_argument("--algorithm", help="Solver identifier, e.g. knapsack_01")
    p.add_argument("--request", type=Path, help="YAML/JSON request {algorithm, params}")
    p.add_argument("--items", type=Path, help="Item table (CSV or parquet)")
    p.add_argument("--capacity", type=int)
    p.add_argument("--capacity2", type=int)
    p.add_argument("--k", type=int)
    p.add_argument("--config", type=Path)
    p.add_argument("--config-kv", nargs="*", help="Inline overrides key=value")
    p.add_argument("--mode", choices=["development", "packaged"])
    p.add_argument("--timeout", type=float, help="Seconds before the solver is killed")
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the encoded argument vector and exit without running",
    )
    p.add_argument("--verbose", action="store_true")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    params: ProblemParameters | Mapping[str, Any]
    algorithm = args.algorithm
    if args.request is not None:
        try:
            req = _load_request(args.request)
        except ValueError as e:
            parser.error(str(e))
        algorithm = algorithm or req.get("algorithm")
        params = dict(req["params"])
    else:
        try:
            params = _params_from_args(args)
        except (OSError, ValueError) as e:
            parser.error(str(e))
    if not algorithm:
        parser.error("--algorithm is required (or set 'algorithm' in --request)")

    try:
        settings = load_settings(
            args.config, args.config_kv, mode=args.mode, timeout_s=args.timeout
        )
    except (OSError, ValueError, yaml.YAMLError) as e:
        parser.error(f"Invalid solver configuration: {e}")

    if args.dry_run:
        try:
            tokens = encode_request(algorithm, params)
        except EncodingError as e:
            print(json.dumps(InvocationResult.from_error(e).to_envelope(), indent=2))
            return 1
        out = {
            "algorithm": resolve_variant(algorithm).value,
            "exe_path": str(resolve_solver_path(algorithm, settings)),
            "args": tokens,
        }
        print(json.dumps(out, indent=2))
        return 0

    if args.verbose:
        print(
            f"[solver] executable: {resolve_solver_path(algorithm, settings)}",
            file=sys.stderr,
        )
    envelope = asyncio.run(run_algorithm(algorithm, params, settings))
    print(json.dumps(envelope, indent=2, ensure_ascii=False))
    return 0 if envelope["success"] else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
