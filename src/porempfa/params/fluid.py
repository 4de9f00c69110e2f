""" Fluid phases and the two-phase fluid system.

The fluid system is queried by the pressure model for the density and viscosity
of each phase at a given temperature and pressure. Temperatures are in Celsius.
"""
from __future__ import annotations

from typing import Optional

import porempfa as pm


class UnitFluid:
    """Mother of all fluids, with properties equal 1.

    Attributes:
        COMPRESSIBILITY: fluid compressibility
        theta_ref: reference temperature in Celsius
    """

    def __init__(self, theta_ref: Optional[float] = None):
        """Initialization of unit fluid.

        Parameters:
            theta_ref (float, optional): reference temperature in Celsius.
        """
        if theta_ref is None:
            self.theta_ref = 20 * (pm.CELSIUS)
        else:
            self.theta_ref = theta_ref

        self.COMPRESSIBILITY = 0 / pm.PASCAL

    def density(
        self, theta: Optional[float] = None, pressure: Optional[float] = None
    ) -> float:
        """Returns fluid density with unit: kg / m^3.

        Parameters:
            theta (float): temperature in Celsius.
            pressure (float): pressure in Pa. Ignored by incompressible fluids.

        Returns:
            float: density
        """
        return 1

    def dynamic_viscosity(
        self, theta: Optional[float] = None, pressure: Optional[float] = None
    ) -> float:
        """Returns dynamic viscosity with unit: Pa s.

        Parameters:
            theta (float, optional): temperature in Celsius
            pressure (float): pressure in Pa.

        Returns:
            float: dynamic viscosity
        """
        return 1


class ConstantFluid(UnitFluid):
    """Incompressible fluid with constant density and viscosity."""

    def __init__(self, density: float, viscosity: float, theta_ref=None):
        super().__init__(theta_ref)
        if density <= 0 or viscosity <= 0:
            raise ValueError("Density and viscosity must be positive")
        self._density = density
        self._viscosity = viscosity

    def density(self, theta=None, pressure=None) -> float:
        return self._density

    def dynamic_viscosity(self, theta=None, pressure=None) -> float:
        return self._viscosity


class FluidSystem:
    """Pair of immiscible phases, wetting phase first.

    Parameters:
        wetting: Fluid of the wetting phase.
        nonwetting: Fluid of the non-wetting phase.

    """

    def __init__(self, wetting: UnitFluid, nonwetting: UnitFluid) -> None:
        self.phases = (wetting, nonwetting)

    def _phase(self, phase: int) -> UnitFluid:
        if phase not in (pm.WETTING, pm.NONWETTING):
            raise ValueError(f"Unknown phase index {phase}")
        return self.phases[phase]

    def density(self, phase: int, temperature: float, pressure: float) -> float:
        """Density of a phase, kg / m^3."""
        return self._phase(phase).density(temperature, pressure)

    def viscosity(self, phase: int, temperature: float, pressure: float) -> float:
        """Dynamic viscosity of a phase, Pa s."""
        return self._phase(phase).dynamic_viscosity(temperature, pressure)
