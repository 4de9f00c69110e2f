"""Container of the per-cell state of the decoupled two-phase model.

The container is owned by the simulation driver and passed explicitly to the
pressure model, the velocity reconstruction and the mobility update, which
read and mutate it.
"""
from __future__ import annotations

import numpy as np

import porempfa as pm


class Variables:
    """Per-cell state, indexed by cell id.

    Face-wise quantities are indexed by (cell, local face index) and sized for
    quadrilateral cells. The upwind mobility tables have one slot per cell of an
    interaction volume: slot 0 is the cell itself, slot 1 the neighbor across the
    face, slot 2 the neighbor across the next face, and slot 3 the cell opposite
    the shared corner.

    Parameters:
        num_cells: Number of cells of the grid.
        saturation_formulation: ``pm.SATURATION_W`` or ``pm.SATURATION_NW``,
            whether :attr:`saturation` holds the wetting or non-wetting
            saturation.
        velocity_formulation: ``pm.VELOCITY_W``, ``pm.VELOCITY_NW`` or
            ``pm.VELOCITY_TOTAL``, which velocity is stored in :attr:`velocity`.
        num_faces_per_cell: ``default=4``

    Raises:
        ValueError: For unknown formulations.

    """

    def __init__(
        self,
        num_cells: int,
        saturation_formulation: str = pm.SATURATION_W,
        velocity_formulation: str = pm.VELOCITY_TOTAL,
        num_faces_per_cell: int = 4,
    ) -> None:
        if saturation_formulation not in (pm.SATURATION_W, pm.SATURATION_NW):
            raise ValueError(f"Unknown saturation formulation {saturation_formulation}")
        if velocity_formulation not in (
            pm.VELOCITY_W,
            pm.VELOCITY_NW,
            pm.VELOCITY_TOTAL,
        ):
            raise ValueError(f"Unknown velocity formulation {velocity_formulation}")

        self.num_cells = num_cells
        self.saturation_formulation = saturation_formulation
        self.velocity_formulation = velocity_formulation

        nc, nf = num_cells, num_faces_per_cell

        self.saturation = np.zeros(nc)
        self.pressure = np.zeros(nc)
        self.capillary_pressure = np.zeros(nc)

        self.mobility_wetting = np.zeros(nc)
        self.mobility_nonwetting = np.zeros(nc)
        self.density_wetting = np.zeros(nc)
        self.density_nonwetting = np.zeros(nc)
        self.viscosity_wetting = np.zeros(nc)
        self.viscosity_nonwetting = np.zeros(nc)
        self.frac_flow_func_wetting = np.zeros(nc)
        self.frac_flow_func_nonwetting = np.zeros(nc)

        self.velocity = np.zeros((nc, nf, 2))
        """Face velocity selected by the velocity formulation."""
        self.velocity_second_phase = np.zeros((nc, nf, 2))
        """Velocity of the other phase for ``vw`` and ``vn``, zero for ``vt``."""
        self.potential_wetting = np.zeros((nc, nf))
        """Outward wetting phase flux, carrying the sign of the potential
        difference across the face."""
        self.potential_nonwetting = np.zeros((nc, nf))

        self.upwind_mobilities_wetting = np.zeros((nc, nf, 4))
        self.upwind_mobilities_nonwetting = np.zeros((nc, nf, 4))

    def grid_size(self) -> int:
        return self.num_cells

    def index(self, cell: int) -> int:
        """Position of a cell in the state arrays."""
        return cell

    def wetting_saturation(self, saturation):
        """Convert a value of the primary saturation to wetting saturation."""
        if self.saturation_formulation == pm.SATURATION_W:
            return saturation
        return 1.0 - saturation

    def upwind_total_mobility(self, cell: int, local_index: int) -> np.ndarray:
        """Sum of the phase upwind mobilities in the four slots of a face."""
        return (
            self.upwind_mobilities_wetting[cell, local_index]
            + self.upwind_mobilities_nonwetting[cell, local_index]
        )
