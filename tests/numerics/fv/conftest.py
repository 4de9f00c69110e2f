"""Fixtures shared by the tests of the MPFA-O discretization."""
import numpy as np
import pytest

import porempfa as pm


def _setup_problem(
    g,
    perm=None,
    dirichlet=None,
    neumann=None,
    sources=None,
    saturation=1.0,
    law=None,
    bc_saturation=None,
    saturation_values=None,
    velocity_formulation=pm.VELOCITY_TOTAL,
):
    """Problem with unit fluids on a grid with computed geometry.

    Parameters:
        g: The grid.
        perm: Permeability. Defaults to the identity.
        dirichlet: Dict face -> pressure, the remaining boundary is Neumann.
        neumann: ``shape=(2, num_faces)`` outward phase fluxes.
        sources: ``shape=(2, num_cells)``.
        saturation: Wetting saturation of all cells, scalar or array.
        law: Material law, defaults to linear relative permeabilities.

    Returns:
        The problem and the variables.

    """
    if perm is None:
        perm = pm.SecondOrderTensor(np.ones(g.num_cells))
    if law is None:
        law = pm.LinearMaterial()
    dirichlet = {} if dirichlet is None else dirichlet

    faces = np.array(sorted(dirichlet), dtype=int)
    bc = pm.BoundaryCondition(g, faces, ["dir"] * faces.size)
    values = np.zeros(g.num_faces)
    for f, p in dirichlet.items():
        values[f] = p

    problem = pm.ParameterizedTwoPhaseProblem(
        g,
        pm.FluidSystem(pm.UnitFluid(), pm.UnitFluid()),
        pm.SpatialParameters(perm, law),
        bc_pressure=bc,
        pressure_values=values,
        neumann_values=neumann,
        bc_saturation=bc_saturation,
        saturation_values=saturation_values,
        sources=sources,
    )
    variables = pm.Variables(
        g.num_cells, pm.SATURATION_W, velocity_formulation=velocity_formulation
    )
    variables.saturation[:] = saturation
    return problem, variables


@pytest.fixture
def setup_problem():
    return _setup_problem


@pytest.fixture
def direct_solver():
    return pm.LinearSolver("direct", "bicgstab", tolerance=1e-13)


def quad_grid(nx, ny, perturb=0.0, seed=3):
    """Quadrilateral grid of the unit square, with interior nodes displaced
    randomly by at most ``perturb`` times the mesh size."""
    x, y = np.meshgrid(np.linspace(0, 1, nx + 1), np.linspace(0, 1, ny + 1))
    x, y = x.ravel(), y.ravel()
    rng = np.random.default_rng(seed)
    interior = (x > 0) & (x < 1) & (y > 0) & (y < 1)
    x[interior] += perturb / nx * rng.uniform(-1, 1, interior.sum())
    y[interior] += perturb / ny * rng.uniform(-1, 1, interior.sum())
    cell_nodes = []
    for j in range(ny):
        for i in range(nx):
            n = i + (nx + 1) * j
            cell_nodes.append([n, n + 1, n + nx + 2, n + nx + 1])
    g = pm.QuadGrid(np.vstack((x, y)), np.array(cell_nodes))
    g.compute_geometry()
    return g


@pytest.fixture
def perturbed_grid():
    return quad_grid(4, 3, perturb=0.2)


@pytest.fixture
def make_quad_grid():
    return quad_grid
