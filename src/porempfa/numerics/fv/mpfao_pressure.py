"""MPFA-O discretization of the pressure equation of decoupled two-phase flow.

The pressure equation

    - div (lambda_t K grad p) = q_w + q_n

is discretized cell-centred, with the fluxes approximated by the multi-point
stencils of :mod:`porempfa.numerics.fv.mpfao`. The total mobility lambda_t is
evaluated per cell of every interaction volume from the upwind mobility tables of
:class:`~porempfa.Variables`, which are updated by
:class:`~porempfa.UpwindMobility` from a reconstructed velocity field.

Cells with a zero permeability tensor are decoupled from the system: their row is
an identity row, and their pressure equals the volume integrated source.

Example:

    >>> model = pm.MpfaOPressure2PUpwind(problem, variables)
    >>> model.initial()
    >>> variables.pressure

"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import scipy.sparse as sps

import porempfa as pm
from porempfa.numerics.fv import mpfao
from porempfa.numerics.fv.interaction_volume import build_interaction_volume
from porempfa.numerics.fv.upwind_mobility import UpwindMobility
from porempfa.numerics.fv.velocity import MpfaOVelocity2P

logger = logging.getLogger(__name__)

module_sections = ["assembly", "numerics"]


class MpfaOPressure2PUpwind:
    """Pressure model with MPFA-O fluxes and upwind mobilities.

    Parameters:
        problem: Grid, fluid system, spatial parameters, sources and boundary
            conditions.
        variables: State of the model. Read and written by all methods.
        linear_solver: Solver for the global system. Defaults to
            ``pm.LinearSolver()``, configured from porempfa.cfg.

    Raises:
        ValueError: If the variables do not match the grid, or a cell does not
            have exactly four faces.

    Attributes:
        A (sps.csr_matrix): The last assembled system matrix.
        b (np.ndarray): The last assembled right hand side.

    """

    def __init__(
        self,
        problem: pm.TwoPhaseProblem,
        variables: pm.Variables,
        linear_solver: Optional[pm.LinearSolver] = None,
    ) -> None:
        if variables.grid_size() != problem.grid.num_cells:
            raise ValueError(
                f"Variables for {variables.grid_size()} cells do not match a grid "
                f"with {problem.grid.num_cells} cells"
            )
        for c in range(problem.grid.num_cells):
            if problem.grid.num_cell_faces(c) != 4:
                raise ValueError(
                    f"Cell {c} has {problem.grid.num_cell_faces(c)} faces, the MPFA-O "
                    "model requires quadrilateral cells"
                )
        self.problem = problem
        self.variables = variables
        self.linear_solver = (
            linear_solver if linear_solver is not None else pm.LinearSolver()
        )
        self.upwind_mobility = UpwindMobility(problem, variables)
        self.velocity = MpfaOVelocity2P(problem, variables)

        self.A: Optional[sps.csr_matrix] = None
        self.b: Optional[np.ndarray] = None

        self.initialize_matrix()

    def __repr__(self) -> str:
        return (
            f"MpfaOPressure2PUpwind on {self.problem.grid} with "
            f"{self.linear_solver}"
        )

    @pm.time_logger(sections=module_sections)
    def initialize_matrix(self) -> None:
        """Compute the sparsity pattern of the system matrix.

        A cell is coupled to itself, to its face neighbors, and to the cells
        opposite its corners.
        """
        grid = self.problem.grid
        rows, cols = [], []
        for c in range(grid.num_cells):
            coupled = {c, *grid.cell_neighbors(c)}
            for i in range(grid.num_cell_faces(c)):
                iv = build_interaction_volume(grid, c, i)
                if iv.cell4 is not None:
                    coupled.add(iv.cell4)
            rows.extend([c] * len(coupled))
            cols.extend(sorted(coupled))

        self._pattern_rows = np.array(rows, dtype=int)
        self._pattern_cols = np.array(cols, dtype=int)
        logger.info(
            "Sparsity pattern of the MPFA O-matrix with "
            f"{self._pattern_rows.size} entries"
        )

    def _is_isolated(self, cell: int, pos: np.ndarray) -> bool:
        K = self.problem.spatial_params.intrinsic_permeability(pos, cell)
        return not np.any(K)

    @pm.time_logger(sections=module_sections)
    def assemble(self) -> tuple[sps.csr_matrix, np.ndarray]:
        """Assemble the global system.

        Returns:
            The matrix and the right hand side, also stored as :attr:`A` and
            :attr:`b`. Row i is the balance of the outward fluxes of cell i and
            its sources.

        Raises:
            DegenerateInteractionVolumeError: If an interaction volume is
                degenerate.
            ValueError: For unknown boundary condition types.

        """
        grid = self.problem.grid
        nc = grid.num_cells

        rows = [self._pattern_rows]
        cols = [self._pattern_cols]
        data = [np.zeros(self._pattern_rows.size)]
        rhs = np.zeros(nc)

        for c in range(nc):
            pos = grid.cell_centers[:2, c]
            q = self.problem.source(pos, c)
            rhs[c] = grid.cell_volumes[c] * (q[pm.WETTING] + q[pm.NONWETTING])

            if self._is_isolated(c, pos):
                rows.append(np.array([c]))
                cols.append(np.array([c]))
                data.append(np.array([1.0]))
                continue

            for i in range(grid.num_cell_faces(c)):
                iv = build_interaction_volume(grid, c, i)
                local = mpfao.local_fluxes(iv, self.problem, self.variables)
                if local.neumann is not None:
                    rhs[c] -= local.neumann
                for stencil in (local.face, local.next_face):
                    if stencil is None:
                        continue
                    cells = list(stencil.coefficients)
                    rows.append(np.full(len(cells), c))
                    cols.append(np.array(cells, dtype=int))
                    data.append(np.array([stencil.coefficients[j] for j in cells]))
                    rhs[c] -= stencil.constant

        A = sps.coo_matrix(
            (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
            shape=(nc, nc),
        ).tocsr()
        logger.info(f"number of nonzero terms in the MPFA O-matrix: {A.nnz}")

        self.A = A
        self.b = rhs
        return A, rhs

    @pm.time_logger(sections=module_sections)
    def solve(self) -> np.ndarray:
        """Solve the last assembled system and store the pressure.

        Raises:
            ValueError: If no system has been assembled.

        """
        if self.A is None:
            raise ValueError("Assemble the pressure system before solving it")
        logger.info("MpfaOPressure2PUpwind: solve for pressure")
        pressure = self.linear_solver.solve(self.A, self.b)
        self.variables.pressure[:] = pressure
        return pressure

    @pm.time_logger(sections=module_sections)
    def update_material_laws(self, first: bool = False) -> None:
        """Evaluate the constitutive relations in all cells.

        Stores capillary pressure, densities, viscosities, mobilities and
        fractional flows, and calls the update hook of the spatial parameters.

        Parameters:
            first: If True, all upwind mobility slots of a cell are set to its own
                mobilities. Otherwise they are upwinded with the current
                velocities and potentials.

        """
        grid = self.problem.grid
        fluids = self.problem.fluid_system
        spatial = self.problem.spatial_params
        v = self.variables

        for c in range(grid.num_cells):
            pos = grid.cell_centers[:2, c]
            temperature = self.problem.temperature(pos, c)
            reference_pressure = self.problem.reference_pressure(pos, c)
            sw = v.wetting_saturation(v.saturation[c])
            law = spatial.material_law_params(pos, c)

            v.capillary_pressure[c] = law.pc(sw)

            v.density_wetting[c] = fluids.density(
                pm.WETTING, temperature, reference_pressure
            )
            v.density_nonwetting[c] = fluids.density(
                pm.NONWETTING, temperature, reference_pressure
            )
            v.viscosity_wetting[c] = fluids.viscosity(
                pm.WETTING, temperature, reference_pressure
            )
            v.viscosity_nonwetting[c] = fluids.viscosity(
                pm.NONWETTING, temperature, reference_pressure
            )

            mob_w = law.krw(sw) / v.viscosity_wetting[c]
            mob_n = law.krn(sw) / v.viscosity_nonwetting[c]
            v.mobility_wetting[c] = mob_w
            v.mobility_nonwetting[c] = mob_n
            v.frac_flow_func_wetting[c] = mob_w / (mob_w + mob_n)
            v.frac_flow_func_nonwetting[c] = mob_n / (mob_w + mob_n)

            spatial.update(sw, c)

        if first:
            v.upwind_mobilities_wetting[:] = v.mobility_wetting[:, None, None]
            v.upwind_mobilities_nonwetting[:] = v.mobility_nonwetting[:, None, None]
        else:
            self.upwind_mobility.update()

    def calculate_velocity(self) -> None:
        """Reconstruct the face velocities from the current pressure."""
        self.velocity.calculate_velocity()

    def pressure(self) -> np.ndarray:
        """Assemble and solve with the current mobilities."""
        self.assemble()
        return self.solve()

    def initial(self) -> np.ndarray:
        """Initial pressure field.

        The system is first solved with cell mobilities, the velocities are
        reconstructed, and the system is solved again with upwind mobilities.
        """
        self.update_material_laws(first=True)
        self.pressure()
        self.calculate_velocity()
        self.update_material_laws()
        return self.pressure()
