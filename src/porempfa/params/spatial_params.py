"""Spatial parameters: intrinsic permeability and material laws per cell."""
from __future__ import annotations

from typing import Sequence, Union

import numpy as np

import porempfa as pm
from porempfa.params.material_laws import MaterialLaw


class SpatialParameters:
    """Cell-wise intrinsic permeability and material law.

    Parameters:
        permeability: Intrinsic permeability, one tensor per cell.
        material_law: Either a single law used in all cells, or one law per cell.

    Raises:
        ValueError: If a list of laws does not have one law per cell.

    """

    def __init__(
        self,
        permeability: pm.SecondOrderTensor,
        material_law: Union[MaterialLaw, Sequence[MaterialLaw]],
    ) -> None:
        self.permeability = permeability
        num_cells = permeability.num_cells
        if isinstance(material_law, MaterialLaw):
            self._laws = [material_law] * num_cells
        else:
            self._laws = list(material_law)
            if len(self._laws) != num_cells:
                raise ValueError(
                    f"Expected {num_cells} material laws, got {len(self._laws)}"
                )

    def intrinsic_permeability(self, pos: np.ndarray, cell: int) -> np.ndarray:
        """The 2 x 2 permeability tensor of a cell."""
        return self.permeability.cell_tensor(cell)

    def material_law_params(self, pos: np.ndarray, cell: int) -> MaterialLaw:
        """The material law of a cell."""
        return self._laws[cell]

    def update(self, sw: float, cell: int) -> None:
        """Hook called with the wetting saturation of every cell when the
        material laws are updated. Solution dependent parameters are updated
        here by subclasses."""
