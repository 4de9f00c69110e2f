"""Upwind evaluation of the phase mobilities in the MPFA-O interaction volumes.

Every interaction volume of a cell (one per local face) stores four upwind
mobilities per phase, one for each of its cells. The mobility used for cell k
is evaluated at the saturation of the cell upstream of k, where upstream is
decided from a velocity interpolated to the interaction volume and the unit
normals of the two half faces of cell k:

    a, b: velocity . n for the two half faces of cell k, outward from k,
    diag: velocity . (n_a + n_b), the direction towards the opposite cell.

If the largest of the three values is at least as large in magnitude as the
smallest, the flow leaves cell k and cell k is its own upstream cell.
Otherwise the cell behind the most negative value is upstream, see
:func:`select_upwind` for ties.

Cells missing on the boundary are replaced by the boundary saturation of the
face they would be across (Dirichlet), or by the saturation of the cell owning
that face (Neumann). The same upwind saturation is used for both phases, and
the mobility is evaluated with the material law of the cell whose slot is
filled and the viscosities of the cell owning the interaction volume.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

import porempfa as pm
from porempfa.numerics.fv.interaction_volume import (
    DegenerateInteractionVolumeError,
    InteractionVolume,
    build_interaction_volume,
)

logger = logging.getLogger(__name__)

module_sections = ["numerics"]


def select_upwind(potentials, own, targets):
    """Choose the upstream value from the three potentials of a cell.

    Parameters:
        potentials: ``(a, b, diag)``.
        own: Value returned if the flow leaves the cell.
        targets: Values ``(A, B, D)`` of the cells behind the half faces a and
            b, and of the diagonally opposite cell.

    Returns:
        ``own`` if ``|max| >= |min|``. Otherwise the target of the smallest
        potential. If the minimum is shared, a half face wins over the
        diagonal, and two tied half faces select the diagonal.

    """
    a, b, diag = potentials
    max_pot = max(a, b, diag)
    min_pot = min(a, b, diag)
    if abs(max_pot) >= abs(min_pot):
        return own

    at_min_a = a == min_pot
    at_min_b = b == min_pot
    if at_min_a and at_min_b:
        return targets[2]
    elif at_min_a:
        return targets[0]
    elif at_min_b:
        return targets[1]
    return targets[2]


class UpwindMobility:
    """Update of the upwind mobility tables of :class:`~porempfa.Variables`.

    Parameters:
        problem: Grid, spatial parameters and saturation boundary conditions.
        variables: State; the saturations, viscosities, velocities and
            potentials are read, the upwind mobility tables are written.

    """

    def __init__(self, problem: pm.TwoPhaseProblem, variables: pm.Variables) -> None:
        self.problem = problem
        self.variables = variables

    @pm.time_logger(sections=module_sections)
    def update(self) -> None:
        """Recompute the upwind mobilities of all cells."""
        grid = self.problem.grid
        for c in range(grid.num_cells):
            for i in range(grid.num_cell_faces(c)):
                iv = build_interaction_volume(grid, c, i)
                self.update_interaction_volume(iv)

    def update_interaction_volume(self, iv: InteractionVolume) -> None:
        """Fill the four slots of one interaction volume."""
        face, next_face = iv.face, iv.next_face
        if face.neighbor and next_face.neighbor:
            self._upwind_general(iv)
        elif face.neighbor:
            bc13 = self._bc_type(next_face)
            bc24 = self._bc_type(iv.face24)
            if bc13 == pm.NEUMANN and bc24 == pm.NEUMANN:
                self._upwind_two_point(iv, face.index_in_inside, 1, iv.cell2)
            else:
                self._upwind_general(iv)
        elif next_face.neighbor:
            bc12 = self._bc_type(face)
            bc34 = self._bc_type(iv.face34)
            if bc12 == pm.NEUMANN and bc34 == pm.NEUMANN:
                self._upwind_two_point(iv, next_face.index_in_inside, 2, iv.cell3)
            else:
                self._upwind_general(iv)
        else:
            self._upwind_corner(iv)

    def _bc_type(self, intersection: pm.Intersection) -> str:
        bc_type = self.problem.bc_type_saturation(intersection.center, intersection)
        if bc_type not in (pm.DIRICHLET, pm.NEUMANN):
            raise ValueError(
                f"Unknown saturation boundary condition {bc_type} on face "
                f"{intersection.face}"
            )
        return bc_type

    def _boundary_saturation(
        self, intersection: pm.Intersection, owner: int
    ) -> float:
        """Saturation of the virtual cell across a boundary face."""
        if self._bc_type(intersection) == pm.DIRICHLET:
            return float(
                self.problem.dirichlet_saturation(intersection.center, intersection)
            )
        return float(self.variables.saturation[owner])

    def _total_velocity(self, cell: int, local_index: int) -> np.ndarray:
        v = self.variables
        if v.velocity_formulation == pm.VELOCITY_TOTAL:
            return v.velocity[cell, local_index]
        return v.velocity[cell, local_index] + v.velocity_second_phase[cell, local_index]

    def interaction_volume_velocity(self, iv: InteractionVolume) -> np.ndarray:
        """Velocity in an interaction volume, interpolated from the half faces.

        The half faces form two pairs of opposite half faces, 12 with 34 and 13
        with 24. For each pair, the normal velocity components and the unit
        normals are averaged with the half face areas as weights. The velocity
        is the vector with these two mean components along the two mean
        normals. Half faces of absent cells do not contribute.

        On Cartesian grids this is the area weighted mean of the velocity
        components orthogonal to each pair. A uniform velocity is recovered
        exactly on any grid.

        Raises:
            DegenerateInteractionVolumeError: If the mean normals are parallel.

        """
        # (cell, face of the cell, unit normal of the pair direction)
        pair_12 = [(iv.cell, iv.face, iv.face.unit_normal)]
        pair_13 = [(iv.cell, iv.next_face, iv.next_face.unit_normal)]
        if iv.cell4 is not None:
            pair_12.append((iv.cell4, iv.face43, iv.face34.unit_normal))
            pair_13.append((iv.cell4, iv.face42, iv.face24.unit_normal))
        elif iv.face24 is not None:
            pair_13.append((iv.cell2, iv.face24, iv.face24.unit_normal))
        elif iv.face34 is not None:
            pair_12.append((iv.cell3, iv.face34, iv.face34.unit_normal))

        normals = np.zeros((2, 2))
        components = np.zeros(2)
        for k, pair in enumerate((pair_12, pair_13)):
            weights = np.array([h.area / 2 for _, h, _ in pair])
            weights /= weights.sum()
            for w, (cell, h, n) in zip(weights, pair):
                normals[k] += w * n
                components[k] += w * (self._total_velocity(cell, h.index_in_inside) @ n)

        try:
            return np.linalg.solve(normals, components)
        except np.linalg.LinAlgError as err:
            raise DegenerateInteractionVolumeError(
                "Parallel half faces in an interaction volume"
            ) from err

    def _upwind_general(self, iv: InteractionVolume) -> None:
        """Three-potential upwinding for interaction volumes with at least one
        interior face."""
        sat = self.variables.saturation
        c1, c2, c3 = iv.cell, iv.cell2, iv.cell3

        s1 = float(sat[c1])
        s2 = float(sat[c2]) if c2 is not None else self._boundary_saturation(iv.face, c1)
        s3 = (
            float(sat[c3])
            if c3 is not None
            else self._boundary_saturation(iv.next_face, c1)
        )
        if iv.cell4 is not None:
            s4 = float(sat[iv.cell4])
        elif c2 is not None:
            s4 = self._boundary_saturation(iv.face24, c2)
        else:
            s4 = self._boundary_saturation(iv.face34, c3)

        velocity = self.interaction_volume_velocity(iv)
        n12 = iv.face.unit_normal
        n13 = iv.next_face.unit_normal
        n24 = iv.face24.unit_normal if iv.face24 is not None else None
        n34 = iv.face34.unit_normal if iv.face34 is not None else None

        def potentials(na, nb):
            return (velocity @ na, velocity @ nb, velocity @ (na + nb))

        upwind: list[Optional[float]] = [None] * 4
        upwind[0] = select_upwind(potentials(n13, n12), s1, (s3, s2, s4))
        if c2 is not None:
            upwind[1] = select_upwind(potentials(n24, -n12), s2, (s4, s1, s3))
        if c3 is not None:
            upwind[2] = select_upwind(potentials(-n13, n34), s3, (s1, s4, s2))
        if iv.cell4 is not None:
            upwind[3] = select_upwind(potentials(-n24, -n34), s4, (s2, s3, s1))

        for slot, (cell, s) in enumerate(zip(iv.cells(), upwind)):
            if cell is not None:
                self._set_slot(iv, slot, cell, s)

    def _upwind_two_point(
        self, iv: InteractionVolume, local_index: int, slot: int, neighbor: int
    ) -> None:
        """Upwinding across the interior face only, used when no saturation is
        given on the boundary faces of the interaction volume."""
        sat = self.variables.saturation
        if self.variables.potential_wetting[iv.cell, local_index] >= 0:
            s = float(sat[iv.cell])
        else:
            s = float(sat[neighbor])
        self._set_slot(iv, 0, iv.cell, s)
        self._set_slot(iv, slot, neighbor, s)

    def _upwind_corner(self, iv: InteractionVolume) -> None:
        """Both faces on the boundary: upwinding on the stored face potentials."""
        v = self.variables
        c = iv.cell
        p11 = v.potential_wetting[c, iv.next_face.index_in_inside]
        p21 = v.potential_wetting[c, iv.face.index_in_inside]
        max_pot, min_pot = max(p11, p21), min(p11, p21)

        if abs(max_pot) >= abs(min_pot):
            s = float(v.saturation[c])
        elif min_pot == p11:
            s = self._boundary_saturation(iv.next_face, c)
        else:
            s = self._boundary_saturation(iv.face, c)
        self._set_slot(iv, 0, c, s)

    def _set_slot(
        self, iv: InteractionVolume, slot: int, cell: int, saturation: float
    ) -> None:
        v = self.variables
        grid = self.problem.grid
        law = self.problem.spatial_params.material_law_params(
            grid.cell_centers[:2, cell], cell
        )
        sw = v.wetting_saturation(saturation)
        i = iv.face.index_in_inside
        v.upwind_mobilities_wetting[iv.cell, i, slot] = (
            law.krw(sw) / v.viscosity_wetting[iv.cell]
        )
        v.upwind_mobilities_nonwetting[iv.cell, i, slot] = (
            law.krn(sw) / v.viscosity_nonwetting[iv.cell]
        )
