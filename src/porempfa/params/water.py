import numpy as np

import porempfa as pm
from porempfa.params.fluid import UnitFluid


class Water(UnitFluid):
    """Liquid water with temperature dependent density and viscosity.

    The density is corrected for pressure through a constant compressibility
    when a pressure is given.
    """

    def __init__(self, theta_ref=None):
        super().__init__(theta_ref)
        self.COMPRESSIBILITY = 4e-10 / pm.PASCAL  # Moderate dependency on theta

    def thermal_expansion(self, delta_theta):
        return (
            0.0002115
            + 1.32 * 1e-6 * delta_theta
            + 1.09 * 1e-8 * np.power(delta_theta, 2)
        )

    def density(self, theta=None, pressure=None):  # theta in CELSIUS
        if theta is None:
            theta = self.theta_ref
        theta_0 = 10 * (pm.CELSIUS)
        rho_0 = 999.8349 * (pm.KILOGRAM / pm.METER**3)
        rho = rho_0 / (1.0 + self.thermal_expansion(theta - theta_0))
        if pressure is not None:
            rho *= np.exp(self.COMPRESSIBILITY * (pressure - pm.ATMOSPHERIC_PRESSURE))
        return rho

    def dynamic_viscosity(self, theta=None, pressure=None):  # theta in CELSIUS
        if theta is None:
            theta = self.theta_ref
        theta = pm.CELSIUS_to_KELVIN(theta)
        mu_0 = 2.414 * 1e-5 * (pm.PASCAL * pm.SECOND)
        return mu_0 * np.power(10, 247.8 / (theta - 140))
