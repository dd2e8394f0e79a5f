from __future__ import annotations

import numpy as np
from scipy import linalg

from ..errors import ConfigurationError


class ExactSolver:
    """Decompose block vectors into full-basis coefficients.

    The basis is LU-factorised once; every call to :meth:`solve` reuses the
    factorisation for all right-hand sides at once.
    """

    def __init__(self, basis: np.ndarray):
        basis = np.array(basis, dtype=np.float64)
        if basis.ndim != 2 or basis.shape[0] != basis.shape[1]:
            raise ConfigurationError(f"basis must be square, got shape {basis.shape}")
        if not np.all(np.isfinite(basis)):
            raise ConfigurationError("basis contains non-finite entries")
        # lu_factor only warns on an exactly singular matrix; check rank up front
        rank = np.linalg.matrix_rank(basis)
        if rank < basis.shape[0]:
            raise ConfigurationError(f"basis is singular (rank {rank} < {basis.shape[0]})")

        basis.setflags(write=False)
        self.basis = basis
        self.size = basis.shape[0]
        self._lu = linalg.lu_factor(basis)

    def solve(self, blocks: np.ndarray) -> np.ndarray:
        """Solve ``basis @ x = b`` for every row ``b`` of ``blocks``."""

        blocks = np.asarray(blocks, dtype=np.float64).reshape(-1, self.size)
        if blocks.shape[0] == 0:
            return np.zeros((0, self.size))
        return linalg.lu_solve(self._lu, blocks.T).T


class ProjectionSolver:
    """Least-squares coefficients of block vectors over a pruned sub-basis.

    With ``B`` the ``(N, k)`` matrix of retained columns, the coefficients
    minimising ``||B x - b||`` satisfy the normal equations
    ``(B^T B) x = B^T b``.  The Gram matrix is Cholesky-factorised once and
    reused for every block.  An empty sub-basis projects everything onto
    the zero vector, so no factorisation is attempted.
    """

    def __init__(self, sub_basis: np.ndarray):
        sub_basis = np.asarray(sub_basis, dtype=np.float64)
        if sub_basis.ndim != 2:
            raise ValueError(f"sub_basis must be 2D, got shape {sub_basis.shape}")
        self.sub_basis = sub_basis
        self.size, self.retained = sub_basis.shape
        self._cho = None
        if self.retained:
            gram = sub_basis.T @ sub_basis
            try:
                self._cho = linalg.cho_factor(gram, lower=True)
            except linalg.LinAlgError as exc:
                raise ConfigurationError(
                    "retained basis columns are linearly dependent; the basis is ill-conditioned"
                ) from exc

    def project(self, blocks: np.ndarray) -> np.ndarray:
        blocks = np.asarray(blocks, dtype=np.float64).reshape(-1, self.size)
        if self._cho is None or blocks.shape[0] == 0:
            return np.zeros((blocks.shape[0], self.retained))
        rhs = self.sub_basis.T @ blocks.T
        return linalg.cho_solve(self._cho, rhs).T


def linear_combination(sub_basis: np.ndarray, coefficients: np.ndarray) -> np.ndarray:
    """Rebuild block vectors as ``sum_m c[m] * B[:, m]`` for each row of ``coefficients``.

    An empty sub-basis yields zero vectors regardless of the coefficients.
    """

    sub_basis = np.asarray(sub_basis, dtype=np.float64)
    size, retained = sub_basis.shape
    coefficients = np.asarray(coefficients, dtype=np.float64)
    if retained == 0:
        return np.zeros((coefficients.shape[0], size))
    return coefficients.reshape(-1, retained) @ sub_basis.T


__all__ = ["ExactSolver", "ProjectionSolver", "linear_combination"]
