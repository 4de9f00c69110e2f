"""
The module is intended to give access to a set of unified keywords, units etc.

To access the quantities, invoke pm.KEY.

"""

""" Global keywords

Define unified keywords used throughout the software.
"""
# Phase indices. Per-phase quantities (sources, Neumann fluxes) are stored with
# the wetting phase first.
WETTING = 0
NONWETTING = 1

# Boundary condition tags, as returned by the boundary hooks of a problem
DIRICHLET = "dir"
NEUMANN = "neu"

# Primary saturation variable: wetting (sw) or non-wetting (sn) saturation
SATURATION_W = "sw"
SATURATION_NW = "sn"

# Velocity stored as primary velocity in the Variables: wetting (vw),
# non-wetting (vn) or total (vt)
VELOCITY_W = "vw"
VELOCITY_NW = "vn"
VELOCITY_TOTAL = "vt"

""" Units """
MILLI = 1e-3

# Time
SECOND = 1.0

# Weight
KILOGRAM = 1.0

# Length
METER = 1.0

# Pressure and permeability
PASCAL = 1.0
BAR = 100000 * PASCAL
ATMOSPHERIC_PRESSURE = 101325 * PASCAL

DARCY = 9.869233e-13 * METER**2
MILLIDARCY = MILLI * DARCY

# Temperature. Fluid properties take temperatures in Celsius.
CELSIUS = 1.0


def CELSIUS_to_KELVIN(celsius):
    return celsius + 273.15


def KELVIN_to_CELSIUS(kelvin):
    return kelvin - 273.15
