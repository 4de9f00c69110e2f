"""Tests of the local MPFA-O flux stencils."""
import numpy as np
import pytest

import porempfa as pm
from porempfa.numerics.fv import mpfao


def _unit_square():
    g = pm.CartGrid(np.array([1, 1]))
    g.compute_geometry()
    return g


def test_rotation():
    assert np.allclose(mpfao.rotate(np.array([1.0, 0.0])), [0, -1])
    assert np.allclose(mpfao.rotate(np.array([0.0, 1.0])), [1, 0])


def test_flux_coefficients_cartesian():
    """On a square with isotropic permeability there is no cross coupling."""
    n = (np.array([0.5, 0.0]), np.array([0.0, 0.5]))
    g = mpfao.flux_coefficients(
        2.0, np.eye(2), n, np.array([0.5, 0.0]), np.array([0.0, 0.5])
    )
    assert np.allclose(g, 2 * np.eye(2))


def test_flux_coefficients_anisotropic():
    K = np.array([[2.0, 1.0], [1.0, 3.0]])
    n = (np.array([0.5, 0.0]), np.array([0.0, 0.5]))
    g = mpfao.flux_coefficients(
        1.0, K, n, np.array([0.5, 0.0]), np.array([0.0, 0.5])
    )
    assert np.allclose(g, K)


def test_collinear_geometry():
    n = (np.array([0.5, 0.0]), np.array([0.0, 0.5]))
    with pytest.raises(pm.DegenerateInteractionVolumeError):
        mpfao.flux_coefficients(
            1.0, np.eye(2), n, np.array([1.0, 0.0]), np.array([2.0, 0.0])
        )


def test_half_face_flux():
    flux = mpfao.HalfFaceFlux.from_row([0, 2, 0], [1.0, 2.0, 3.0], constant=-1.0)
    assert flux.coefficients == {0: 4.0, 2: 2.0}
    assert np.isclose(flux.evaluate(np.array([1.0, 7.0, 0.5])), 4.0)


def test_single_cell_dirichlet(setup_problem):
    """Corner interaction volumes with Dirichlet data on both faces."""
    g = _unit_square()
    problem, variables = setup_problem(
        g, dirichlet={f: 1.0 for f in range(4)}, saturation=1.0
    )
    pm.MpfaOPressure2PUpwind(problem, variables).update_material_laws(first=True)

    for i in range(4):
        iv = pm.build_interaction_volume(g, 0, i)
        local = mpfao.local_fluxes(iv, problem, variables)
        assert local.neumann is None
        for stencil in (local.face, local.next_face):
            assert np.isclose(stencil.coefficients[0], 1.0)
            assert np.isclose(stencil.constant, -1.0)


def test_neumann_face(setup_problem):
    """The prescribed flux of a Neumann face is converted with the densities of
    the cell, and scaled with the face area."""
    g = _unit_square()
    neumann = np.zeros((2, g.num_faces))
    neumann[:, 0] = [2.0, 6.0]
    problem, variables = setup_problem(g, dirichlet={1: 0.0}, neumann=neumann)
    pm.MpfaOPressure2PUpwind(problem, variables).update_material_laws(first=True)
    variables.density_wetting[:] = 2.0
    variables.density_nonwetting[:] = 3.0

    west = g.intersections(0)[0]
    assert mpfao.boundary_data(problem, variables, west, 0) == (pm.NEUMANN, 3.0)

    local = mpfao.local_fluxes(pm.build_interaction_volume(g, 0, 0), problem, variables)
    assert local.face is None
    assert np.isclose(local.neumann, 3.0)


class RobinProblem(pm.ParameterizedTwoPhaseProblem):
    def bc_type_pressure(self, pos, intersection):
        return "rob"


def test_unknown_boundary_type():
    g = _unit_square()
    problem = RobinProblem(
        g,
        pm.FluidSystem(pm.UnitFluid(), pm.UnitFluid()),
        pm.SpatialParameters(pm.SecondOrderTensor(np.ones(1)), pm.LinearMaterial()),
    )
    variables = pm.Variables(1)
    variables.upwind_mobilities_wetting[:] = 1
    with pytest.raises(ValueError):
        mpfao.local_fluxes(pm.build_interaction_volume(g, 0, 0), problem, variables)


def test_interior_stencils_conservative(setup_problem):
    """The two cells sharing a half face compute opposite fluxes through it."""
    g = pm.CartGrid(np.array([2, 2]))
    g.compute_geometry()
    K = pm.SecondOrderTensor(
        np.array([1.0, 2.0, 3.0, 4.0]), kyy=np.ones(4), kxy=np.full(4, 0.5)
    )
    problem, variables = setup_problem(g, perm=K)
    pm.MpfaOPressure2PUpwind(problem, variables).update_material_laws(first=True)
    p = np.array([1.0, -2.0, 0.5, 3.0])

    # Cell 0, east face: the corner (1, 1) is also seen from cell 1 through its
    # west face's predecessor, the north face, whose next face is the west face.
    flux_from_0 = mpfao.local_fluxes(
        pm.build_interaction_volume(g, 0, 1), problem, variables
    ).face.evaluate(p)
    flux_from_1 = mpfao.local_fluxes(
        pm.build_interaction_volume(g, 1, 3), problem, variables
    ).next_face.evaluate(p)
    assert np.isclose(flux_from_0, -flux_from_1)
