from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path for package imports like `processes.*`
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from processes.solver.config import SolverSettings  # noqa: E402
from tests.fixtures.solvers import MakeSolver  # noqa: E402


@pytest.fixture
def solver_dir(tmp_path: Path) -> Path:
    d = tmp_path / "cpp"
    d.mkdir()
    return d


@pytest.fixture
def settings(solver_dir: Path) -> SolverSettings:
    return SolverSettings(mode="development", dev_root=solver_dir, exe_suffix="")


@pytest.fixture
def make_solver(solver_dir: Path) -> MakeSolver:
    def _make(name: str, source: str) -> Path:
        path = solver_dir / name
        path.write_text(f"#!{sys.executable}\n{source}", encoding="utf-8")
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
