"""Relative permeability and capillary pressure laws.

All laws are written in terms of the wetting saturation and act on the
effective saturation

    se = (sw - swr) / (1 - swr - snr),

clipped to [0, 1], where swr and snr are the residual saturations of the
wetting and non-wetting phase. The relative permeability of the wetting phase
is non-decreasing, that of the non-wetting phase non-increasing in sw.

The phase mobility is kr / mu; it is assembled by the pressure model from
these laws and the viscosities of the fluid system.
"""
from __future__ import annotations

from typing import Union

import numpy as np

ArrayLike = Union[float, np.ndarray]


class MaterialLaw:
    """Common part of the material laws: residual saturations."""

    def __init__(self, swr: float = 0.0, snr: float = 0.0) -> None:
        if swr < 0 or snr < 0 or swr + snr >= 1:
            raise ValueError(
                f"Invalid residual saturations swr={swr}, snr={snr}. They must be "
                "non-negative with sum less than one"
            )
        self.swr = swr
        self.snr = snr

    def effective_saturation(self, sw: ArrayLike) -> ArrayLike:
        return np.clip((sw - self.swr) / (1 - self.swr - self.snr), 0.0, 1.0)

    def krw(self, sw: ArrayLike) -> ArrayLike:
        """Relative permeability of the wetting phase."""
        raise NotImplementedError

    def krn(self, sw: ArrayLike) -> ArrayLike:
        """Relative permeability of the non-wetting phase."""
        raise NotImplementedError

    def pc(self, sw: ArrayLike) -> ArrayLike:
        """Capillary pressure pn - pw in Pa."""
        raise NotImplementedError


class LinearMaterial(MaterialLaw):
    """Linear relative permeabilities and a linear capillary pressure curve.

    Parameters:
        entry_pc: Capillary pressure at full (effective) wetting saturation.
        max_pc: Capillary pressure at zero effective wetting saturation.
        swr: Residual wetting saturation.
        snr: Residual non-wetting saturation.

    """

    def __init__(
        self,
        entry_pc: float = 0.0,
        max_pc: float = 0.0,
        swr: float = 0.0,
        snr: float = 0.0,
    ) -> None:
        super().__init__(swr, snr)
        self.entry_pc = entry_pc
        self.max_pc = max_pc

    def krw(self, sw):
        return self.effective_saturation(sw)

    def krn(self, sw):
        return 1.0 - self.effective_saturation(sw)

    def pc(self, sw):
        se = self.effective_saturation(sw)
        return self.entry_pc + (1.0 - se) * (self.max_pc - self.entry_pc)


class QuadraticMaterial(MaterialLaw):
    """Quadratic relative permeabilities, no capillary pressure."""

    def krw(self, sw):
        return self.effective_saturation(sw) ** 2

    def krn(self, sw):
        return (1.0 - self.effective_saturation(sw)) ** 2

    def pc(self, sw):
        return 0.0 * self.effective_saturation(sw)


class BrooksCorey(MaterialLaw):
    """Brooks-Corey capillary pressure with Burdine relative permeabilities.

    Below ``se_min`` the capillary pressure is kept constant to avoid the
    singularity at zero effective saturation.

    Parameters:
        entry_pressure: Entry pressure pd, Pa.
        lmbda: Pore size distribution index, positive.
        swr: Residual wetting saturation.
        snr: Residual non-wetting saturation.
        se_min: Regularization threshold for the capillary pressure.

    """

    def __init__(
        self,
        entry_pressure: float,
        lmbda: float,
        swr: float = 0.0,
        snr: float = 0.0,
        se_min: float = 1e-2,
    ) -> None:
        super().__init__(swr, snr)
        if lmbda <= 0:
            raise ValueError("The pore size distribution index must be positive")
        self.entry_pressure = entry_pressure
        self.lmbda = lmbda
        self.se_min = se_min

    def krw(self, sw):
        se = self.effective_saturation(sw)
        return np.power(se, (2.0 + 3.0 * self.lmbda) / self.lmbda)

    def krn(self, sw):
        se = self.effective_saturation(sw)
        exponent = (2.0 + self.lmbda) / self.lmbda
        return np.square(1.0 - se) * (1.0 - np.power(se, exponent))

    def pc(self, sw):
        se = np.maximum(self.effective_saturation(sw), self.se_min)
        return self.entry_pressure * np.power(se, -1.0 / self.lmbda)
