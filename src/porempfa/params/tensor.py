"""
The tensor module contains the second order tensor used to represent the cell-wise
intrinsic permeability.
"""

from __future__ import annotations

from typing import Optional

import numpy as np


class SecondOrderTensor:
    """Cell-wise permeability in two dimensions.

    The tensor must be symmetric positive semi-definite. A tensor which is
    identically zero in a cell is allowed; such cells are decoupled from the
    pressure system by the MPFA-O discretization.
    """

    def __init__(
        self,
        kxx: np.ndarray,
        kyy: Optional[np.ndarray] = None,
        kxy: Optional[np.ndarray] = None,
    ):
        """Initialize permeability

        Parameters:
            kxx: Nc array, with cell-wise values of kxx permeability.
            kyy: Nc array of kyy. Default equal to kxx.
            kxy: Nc array of kxy. Defaults to zero.

        Raises:
            ValueError if the permeability is not positive semi-definite, or the
            arrays have different sizes.

        """
        kxx = np.atleast_1d(np.asarray(kxx, dtype=float))
        Nc = kxx.size

        if kyy is None:
            kyy = kxx
        if kxy is None:
            kxy = 0 * kxx
        kyy = np.atleast_1d(np.asarray(kyy, dtype=float))
        kxy = np.atleast_1d(np.asarray(kxy, dtype=float))
        if kyy.size != Nc or kxy.size != Nc:
            raise ValueError("All tensor components must have one value per cell")

        if np.any(kxx < 0) or np.any(kyy < 0):
            raise ValueError(
                "Tensor is not positive semi-definite because of diagonal components"
            )
        # Onsager's principle - tensor should be positive (semi-)definite
        if np.any((kxx * kyy - kxy * kxy) < 0):
            raise ValueError(
                "Tensor is not positive semi-definite because of off-diagonal "
                "components"
            )

        perm = np.zeros((2, 2, Nc))
        perm[0, 0, ::] = kxx
        perm[1, 0, ::] = kxy
        perm[0, 1, ::] = kxy
        perm[1, 1, ::] = kyy

        self.values = perm
        """Tensor components, ``shape=(2, 2, num_cells)``."""

    @property
    def num_cells(self) -> int:
        return self.values.shape[2]

    def cell_tensor(self, c: int) -> np.ndarray:
        """The 2 x 2 tensor of cell c."""
        return self.values[:, :, c]

    def is_zero(self) -> np.ndarray:
        """Boolean array, True for cells where the tensor is the zero matrix."""
        return np.all(self.values == 0, axis=(0, 1))

    def copy(self) -> SecondOrderTensor:
        """`SecondOrderTensor.copy` returns a deep copy of the tensor.

        Returns:
            SecondOrderTensor: Copy of this object.

        """
        kxx = self.values[0, 0, :].copy()
        kxy = self.values[1, 0, :].copy()
        kyy = self.values[1, 1, :].copy()
        return SecondOrderTensor(kxx, kxy=kxy, kyy=kyy)

    def __str__(self) -> str:
        s = "Second order tensor of dimension 2 in "
        s += f"{self.num_cells} cells, with {self.is_zero().sum()} zero tensors.\n"
        return s

    def __repr__(self) -> str:
        s = f"Second order tensor in {self.num_cells} cells.\n"
        s += f"Minimum kxx: {self.values[0, 0].min():.5e}, maximum "
        s += f"{self.values[0, 0].max():.5e}\n"
        s += f"Minimum kyy: {self.values[1, 1].min():.5e}, maximum "
        s += f"{self.values[1, 1].max():.5e}\n"
        s += f"Maximum absolute kxy: {np.abs(self.values[0, 1]).max():.5e}\n"
        return s
