"""Reconstruction of face velocities from an MPFA-O pressure solution.

The total flux through a face of a cell is the sum of the fluxes through its two
half faces, each evaluated with the local stencil of the interaction volume at
the corresponding corner. These are the same stencils the pressure system is
assembled from, so the fluxes are conservative. On Neumann faces the prescribed
fluxes are used.

The total flux is split into phase fluxes with the fractional flow function of
the upstream cell. For inflow through a Dirichlet (saturation) boundary face, the
fractional flow at the boundary saturation is used.
"""
from __future__ import annotations

import logging

import numpy as np

import porempfa as pm
from porempfa.numerics.fv import mpfao
from porempfa.numerics.fv.interaction_volume import build_interaction_volume

logger = logging.getLogger(__name__)

module_sections = ["numerics"]


class MpfaOVelocity2P:
    """Face velocities and phase potentials of the two-phase model.

    Parameters:
        problem: Grid, parameters and boundary conditions.
        variables: State; the pressure, mobilities and densities are read, the
            velocities and potentials are written.

    """

    def __init__(self, problem: pm.TwoPhaseProblem, variables: pm.Variables) -> None:
        self.problem = problem
        self.variables = variables

    def _is_isolated(self, cell: int) -> bool:
        grid = self.problem.grid
        K = self.problem.spatial_params.intrinsic_permeability(
            grid.cell_centers[:2, cell], cell
        )
        return not np.any(K)

    def total_fluxes(self) -> tuple[np.ndarray, np.ndarray]:
        """Total outward volumetric flux through every face of every cell.

        Returns:
            A tuple of two arrays of ``shape=(num_cells, 4)``. The first holds
            the fluxes, the second is True on faces with prescribed Neumann
            fluxes.

        """
        grid = self.problem.grid
        pressure = self.variables.pressure
        flux = np.zeros((grid.num_cells, 4))
        neumann = np.zeros((grid.num_cells, 4), dtype=bool)

        for c in range(grid.num_cells):
            if self._is_isolated(c):
                continue
            for i in range(grid.num_cell_faces(c)):
                iv = build_interaction_volume(grid, c, i)
                local = mpfao.local_fluxes(iv, self.problem, self.variables)
                j = iv.next_face.index_in_inside
                if local.neumann is not None:
                    neumann[c, i] = True
                if local.face is not None:
                    flux[c, i] += local.face.evaluate(pressure)
                if local.next_face is not None:
                    flux[c, j] += local.next_face.evaluate(pressure)
        return flux, neumann

    def _boundary_fractional_flow(
        self, intersection: pm.Intersection, cell: int
    ) -> float:
        v = self.variables
        saturation = self.problem.dirichlet_saturation(intersection.center, intersection)
        sw = v.wetting_saturation(saturation)
        law = self.problem.spatial_params.material_law_params(
            self.problem.grid.cell_centers[:2, cell], cell
        )
        mob_w = law.krw(sw) / v.viscosity_wetting[cell]
        mob_n = law.krn(sw) / v.viscosity_nonwetting[cell]
        return mob_w / (mob_w + mob_n)

    def _wetting_fraction(self, intersection: pm.Intersection, flux: float) -> float:
        """Fractional flow of the wetting phase upstream of a face."""
        v = self.variables
        c = intersection.inside
        if flux >= 0:
            return v.frac_flow_func_wetting[c]
        if intersection.neighbor:
            return v.frac_flow_func_wetting[intersection.outside]
        bc_type = self.problem.bc_type_saturation(intersection.center, intersection)
        if bc_type == pm.DIRICHLET:
            return self._boundary_fractional_flow(intersection, c)
        elif bc_type == pm.NEUMANN:
            return v.frac_flow_func_wetting[c]
        raise ValueError(
            f"Unknown saturation boundary condition {bc_type} on face "
            f"{intersection.face}"
        )

    @pm.time_logger(sections=module_sections)
    def calculate_velocity(self) -> None:
        """Compute and store the face velocities and phase potentials."""
        grid = self.problem.grid
        v = self.variables
        flux, neumann = self.total_fluxes()

        for c in range(grid.num_cells):
            for intersection in grid.intersections(c):
                i = intersection.index_in_inside
                if neumann[c, i]:
                    J = self.problem.neumann_pressure(intersection.center, intersection)
                    flux_w = J[pm.WETTING] / v.density_wetting[c] * intersection.area
                    flux_n = (
                        J[pm.NONWETTING] / v.density_nonwetting[c] * intersection.area
                    )
                else:
                    fw = self._wetting_fraction(intersection, flux[c, i])
                    flux_w = fw * flux[c, i]
                    flux_n = flux[c, i] - flux_w

                v.potential_wetting[c, i] = flux_w
                v.potential_nonwetting[c, i] = flux_n

                to_velocity = intersection.unit_normal / intersection.area
                if v.velocity_formulation == pm.VELOCITY_W:
                    v.velocity[c, i] = flux_w * to_velocity
                    v.velocity_second_phase[c, i] = flux_n * to_velocity
                elif v.velocity_formulation == pm.VELOCITY_NW:
                    v.velocity[c, i] = flux_n * to_velocity
                    v.velocity_second_phase[c, i] = flux_w * to_velocity
                else:
                    v.velocity[c, i] = (flux_w + flux_n) * to_velocity
                    v.velocity_second_phase[c, i] = 0.0
