"""   porempfa.

Root directory for the porempfa package: a cell-centred multi-point flux
approximation (MPFA-O) pressure solver for decoupled, immiscible two-phase flow
in porous media, with upwind evaluation of the phase mobilities. Contains the
following sub-packages:

grids: Two-dimensional grid class, structured and quadrilateral constructors.

params: Permeability tensors, boundary conditions, fluids, material laws and
    spatial parameters.

models: The problem definition and the container of the per-cell state.

numerics: Linear solvers, interaction volumes, the MPFA-O pressure model, the
    upwind mobility update and the velocity reconstruction.

utils: Constants and logging.


isort:skip_file

"""

import os
from pathlib import Path
import configparser


__version__ = "0.3.0"

# Try to read the config file from the directory where python process was launched
try:
    cwd = Path(os.getcwd())
    pth = cwd / Path("porempfa.cfg")
    cfg = configparser.ConfigParser()
    cfg.read(pth)
    config = dict(cfg)
except (OSError, configparser.Error):
    # the assumption is that no configurations are given
    config = {}

# ------------------------------------
# Simplified namespaces. The rule of thumb is that classes and modules that a
# user can be exposed to should have a shortcut here.

from porempfa.utils.common_constants import *
from porempfa.utils.logging import time_logger

# Grids
from porempfa.grids.grid import FaceOrdering, Grid, Intersection
from porempfa.grids.structured import CartGrid, TensorGrid
from porempfa.grids.quadrilateral import QuadGrid

# Parameters
from porempfa.params.tensor import SecondOrderTensor
from porempfa.params.bc import BoundaryCondition, face_on_side
from porempfa.params.fluid import ConstantFluid, FluidSystem, UnitFluid
from porempfa.params.water import Water
from porempfa.params.material_laws import (
    BrooksCorey,
    LinearMaterial,
    QuadraticMaterial,
)
from porempfa.params.spatial_params import SpatialParameters

# Models
from porempfa.models.variables import Variables
from porempfa.models.problem import ParameterizedTwoPhaseProblem, TwoPhaseProblem

# Numerics
from porempfa.numerics.linear_solvers import LinearSolver
from porempfa.numerics.fv.interaction_volume import (
    DegenerateInteractionVolumeError,
    InteractionVolume,
    build_interaction_volume,
    find_fourth_cell,
)
from porempfa.numerics.fv import mpfao
from porempfa.numerics.fv.upwind_mobility import UpwindMobility, select_upwind
from porempfa.numerics.fv.velocity import MpfaOVelocity2P
from porempfa.numerics.fv.mpfao_pressure import MpfaOPressure2PUpwind
