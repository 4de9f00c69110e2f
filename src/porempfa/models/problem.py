"""Problem definitions for the decoupled two-phase pressure equation.

A problem bundles the grid, the fluid system and the spatial parameters, and
answers the queries of the discretization: sources, boundary condition types and
values for pressure and saturation, temperature and reference pressure.

Gravity is not included.
"""
from __future__ import annotations

from typing import Optional

import numpy as np

import porempfa as pm


class TwoPhaseProblem:
    """Base class for two-phase pressure problems.

    Derived classes must implement the boundary hooks, and either
    :meth:`temperature_at_pos` and :meth:`reference_pressure_at_pos` or the cell
    versions :meth:`temperature` and :meth:`reference_pressure`.

    Boundary hooks receive the face center and the face handle
    (:class:`~porempfa.grids.grid.Intersection`); cell hooks receive the cell
    center and the cell index.

    Parameters:
        grid: Grid with computed geometry.
        fluid_system: Wetting and non-wetting phase.
        spatial_params: Permeability and material laws. The problem owns them.

    """

    def __init__(
        self,
        grid: pm.Grid,
        fluid_system: pm.FluidSystem,
        spatial_params: pm.SpatialParameters,
    ) -> None:
        self.grid = grid
        self.fluid_system = fluid_system
        self.spatial_params = spatial_params

    def source(self, pos: np.ndarray, cell: int) -> np.ndarray:
        """Volumetric source per phase (wetting, non-wetting), 1/s."""
        return np.zeros(2)

    def bc_type_pressure(self, pos: np.ndarray, intersection: pm.Intersection) -> str:
        """``pm.DIRICHLET`` or ``pm.NEUMANN`` for the pressure equation."""
        raise NotImplementedError(
            "The problem does not provide a bc_type_pressure() method."
        )

    def dirichlet_pressure(
        self, pos: np.ndarray, intersection: pm.Intersection
    ) -> float:
        raise NotImplementedError(
            "The problem does not provide a dirichlet_pressure() method."
        )

    def neumann_pressure(
        self, pos: np.ndarray, intersection: pm.Intersection
    ) -> np.ndarray:
        """Outward mass flux per phase (wetting, non-wetting), kg / (m^2 s)."""
        raise NotImplementedError(
            "The problem does not provide a neumann_pressure() method."
        )

    def bc_type_saturation(
        self, pos: np.ndarray, intersection: pm.Intersection
    ) -> str:
        raise NotImplementedError(
            "The problem does not provide a bc_type_saturation() method."
        )

    def dirichlet_saturation(
        self, pos: np.ndarray, intersection: pm.Intersection
    ) -> float:
        """Boundary saturation, in the saturation formulation of the model."""
        raise NotImplementedError(
            "The problem does not provide a dirichlet_saturation() method."
        )

    def temperature(self, pos: np.ndarray, cell: int) -> float:
        """Temperature in Celsius."""
        return self.temperature_at_pos(pos)

    def temperature_at_pos(self, pos: np.ndarray) -> float:
        raise NotImplementedError(
            "The problem does not provide a temperature_at_pos() method."
        )

    def reference_pressure(self, pos: np.ndarray, cell: int) -> float:
        """Pressure at which the fluid properties are evaluated, Pa."""
        return self.reference_pressure_at_pos(pos)

    def reference_pressure_at_pos(self, pos: np.ndarray) -> float:
        raise NotImplementedError(
            "The problem does not provide a reference_pressure_at_pos() method."
        )


class ParameterizedTwoPhaseProblem(TwoPhaseProblem):
    """Problem defined by arrays of boundary data and sources.

    Parameters:
        grid: Grid with computed geometry.
        fluid_system: Wetting and non-wetting phase.
        spatial_params: Permeability and material laws.
        bc_pressure: Types of the pressure conditions. Defaults to Neumann on
            the whole boundary.
        pressure_values: ``shape=(num_faces,)`` Dirichlet pressures, read on
            Dirichlet faces. Defaults to zero.
        neumann_values: ``shape=(2, num_faces)`` outward mass flux per phase,
            read on Neumann faces. Defaults to zero (no flow).
        bc_saturation: Types of the saturation conditions. Defaults to Neumann.
        saturation_values: ``shape=(num_faces,)`` Dirichlet saturations.
        sources: ``shape=(2, num_cells)`` volumetric source per phase.
        temperature: Uniform temperature in Celsius.
        reference_pressure: Uniform reference pressure.

    """

    def __init__(
        self,
        grid: pm.Grid,
        fluid_system: pm.FluidSystem,
        spatial_params: pm.SpatialParameters,
        bc_pressure: Optional[pm.BoundaryCondition] = None,
        pressure_values: Optional[np.ndarray] = None,
        neumann_values: Optional[np.ndarray] = None,
        bc_saturation: Optional[pm.BoundaryCondition] = None,
        saturation_values: Optional[np.ndarray] = None,
        sources: Optional[np.ndarray] = None,
        temperature: float = 20 * pm.CELSIUS,
        reference_pressure: float = pm.ATMOSPHERIC_PRESSURE,
    ) -> None:
        super().__init__(grid, fluid_system, spatial_params)
        nf, nc = grid.num_faces, grid.num_cells

        self.bc_pressure = (
            bc_pressure if bc_pressure is not None else pm.BoundaryCondition(grid)
        )
        self.bc_saturation = (
            bc_saturation
            if bc_saturation is not None
            else pm.BoundaryCondition(grid)
        )
        self.pressure_values = self._check_shape(pressure_values, (nf,), "pressure")
        self.neumann_values = self._check_shape(neumann_values, (2, nf), "Neumann")
        self.saturation_values = self._check_shape(
            saturation_values, (nf,), "saturation"
        )
        self.sources = self._check_shape(sources, (2, nc), "source")
        self._temperature = temperature
        self._reference_pressure = reference_pressure

    @staticmethod
    def _check_shape(values, shape, name) -> np.ndarray:
        if values is None:
            return np.zeros(shape)
        values = np.asarray(values, dtype=float)
        if values.shape != shape:
            raise ValueError(
                f"Expected {name} values of shape {shape}, got {values.shape}"
            )
        return values

    def source(self, pos, cell):
        return self.sources[:, cell]

    def bc_type_pressure(self, pos, intersection):
        return self.bc_pressure.type_of(intersection.face)

    def dirichlet_pressure(self, pos, intersection):
        return self.pressure_values[intersection.face]

    def neumann_pressure(self, pos, intersection):
        return self.neumann_values[:, intersection.face]

    def bc_type_saturation(self, pos, intersection):
        return self.bc_saturation.type_of(intersection.face)

    def dirichlet_saturation(self, pos, intersection):
        return self.saturation_values[intersection.face]

    def temperature_at_pos(self, pos):
        return self._temperature

    def reference_pressure_at_pos(self, pos):
        return self._reference_pressure
