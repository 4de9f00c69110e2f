"""
Module for the linear solver of the global pressure system.

The solver is chosen as a pair of a preconditioner and an iterative method:

    ilu0   + cg, bicgstab
    direct + loop, bicgstab

where ``direct`` is a sparse LU factorization used as preconditioner and
``loop`` is a preconditioned Richardson iteration. ``ilu0`` is the threshold
incomplete LU of SuperLU (``spilu``) with no dropping and the fill limited to
the number of nonzeros of the matrix. This is close to, but not identical with,
a zero fill-in ILU(0): the fill may be placed outside the sparsity pattern of
the matrix.

The defaults, and the tolerance (relative residual reduction) and iteration
cap, can be set in the ``[linear_solver]`` section of porempfa.cfg; explicit
arguments take precedence.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import scipy.sparse as sps
import scipy.sparse.linalg as spla

import porempfa as pm

logger = logging.getLogger(__name__)

module_sections = ["numerics"]

SUPPORTED_SOLVERS = {
    "ilu0": ("cg", "bicgstab"),
    "direct": ("loop", "bicgstab"),
}

DEFAULT_TOLERANCE = 1e-14
DEFAULT_MAX_ITERATIONS = 1000


class LinearSolver:
    """Preconditioned iterative solver for sparse linear systems.

    Parameters:
        preconditioner: ``"ilu0"`` or ``"direct"``.
        solver: ``"cg"``, ``"bicgstab"`` or ``"loop"``, see the module docstring
            for the valid combinations.
        tolerance: Relative reduction of the residual.
        max_iterations: Maximum number of iterations.

    Raises:
        NotImplementedError: If the combination of preconditioner and solver
            is not supported.

    """

    def __init__(
        self,
        preconditioner: Optional[str] = None,
        solver: Optional[str] = None,
        tolerance: Optional[float] = None,
        max_iterations: Optional[int] = None,
    ) -> None:
        cfg = pm.config.get("linear_solver", {})

        if preconditioner is None:
            preconditioner = cfg.get("preconditioner", "ilu0")
        if solver is None:
            solver = cfg.get("solver", "bicgstab")
        if tolerance is None:
            tolerance = cfg.get("tolerance", DEFAULT_TOLERANCE)
        if max_iterations is None:
            max_iterations = cfg.get("max_iterations", DEFAULT_MAX_ITERATIONS)

        self.preconditioner: str = preconditioner.strip().lower()
        self.solver: str = solver.strip().lower()
        self.tolerance: float = float(tolerance)
        self.max_iterations: int = int(max_iterations)

        if self.preconditioner not in SUPPORTED_SOLVERS:
            raise NotImplementedError(
                f"Preconditioner {preconditioner} is not implemented"
            )
        if self.solver not in SUPPORTED_SOLVERS[self.preconditioner]:
            raise NotImplementedError(
                f"Combination of preconditioner {preconditioner} and solver "
                f"{solver} is not implemented"
            )

    def __repr__(self) -> str:
        return (
            f"LinearSolver(preconditioner={self.preconditioner}, "
            f"solver={self.solver}, tolerance={self.tolerance}, "
            f"max_iterations={self.max_iterations})"
        )

    @pm.time_logger(sections=module_sections)
    def solve(
        self, A: sps.spmatrix, b: np.ndarray, x0: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """Solve A x = b.

        Parameters:
            A: Square sparse matrix.
            b: Right hand side.
            x0: Initial guess. Defaults to zero.

        Returns:
            The solution. If the tolerance is not reached within the iteration
            cap, the last iterate is returned and a warning is logged.

        Raises:
            ValueError: If the iterative method breaks down.

        """
        A = sps.csc_matrix(A)
        b = np.asarray(b, dtype=float)

        if self.preconditioner == "ilu0":
            M = self._ilu0(A)
        else:
            M = self._direct(A)

        if self.solver == "cg":
            x, info = spla.cg(
                A,
                b,
                x0=x0,
                rtol=self.tolerance,
                atol=0.0,
                maxiter=self.max_iterations,
                M=M,
            )
        elif self.solver == "bicgstab":
            x, info = spla.bicgstab(
                A,
                b,
                x0=x0,
                rtol=self.tolerance,
                atol=0.0,
                maxiter=self.max_iterations,
                M=M,
            )
        else:
            x, info = self._loop(A, b, x0, M)

        if info > 0:
            logger.warning(
                f"Linear solver {self.solver} with preconditioner "
                f"{self.preconditioner} did not reach the tolerance "
                f"{self.tolerance} in {info} iterations"
            )
        elif info < 0:
            raise ValueError(
                f"Breakdown of linear solver {self.solver} (code {info})"
            )
        return x

    @staticmethod
    def _ilu0(A: sps.csc_matrix) -> spla.LinearOperator:
        # ILUT without dropping, fill capped at nnz(A), natural ordering
        ilu = spla.spilu(A, drop_tol=0.0, fill_factor=1.0, permc_spec="NATURAL")
        return spla.LinearOperator(A.shape, matvec=ilu.solve)

    @staticmethod
    def _direct(A: sps.csc_matrix) -> spla.LinearOperator:
        lu = spla.splu(A)
        return spla.LinearOperator(A.shape, matvec=lu.solve)

    def _loop(
        self,
        A: sps.csc_matrix,
        b: np.ndarray,
        x0: Optional[np.ndarray],
        M: spla.LinearOperator,
    ) -> tuple[np.ndarray, int]:
        """Preconditioned Richardson iteration x <- x + M (b - A x)."""
        x = np.zeros_like(b) if x0 is None else np.asarray(x0, dtype=float).copy()
        residual = b - A @ x
        initial_norm = np.linalg.norm(residual)
        if initial_norm == 0:
            return x, 0

        for _ in range(self.max_iterations):
            x += M.matvec(residual)
            residual = b - A @ x
            if np.linalg.norm(residual) <= self.tolerance * initial_norm:
                return x, 0
        return x, self.max_iterations
