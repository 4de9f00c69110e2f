"""Local flux stencils of the MPFA-O method on an interaction volume.

For an interaction volume of cell 1 (see
:mod:`porempfa.numerics.fv.interaction_volume`) the functions here compute the
total volumetric flux out of cell 1 through the halves of its two faces that
touch the shared corner, as affine functions of the cell pressures:

    flux = sum_j coefficients[j] * p_j + constant.

Within each cell k the pressure is linear, determined by the cell pressure and
the pressures at the midpoints of its two half faces. Writing

    nu_1k, nu_2k    rotated center-to-face vectors of cell k,
    dF_k            |nu_1k . R nu_2k|, twice the area of the triangle they span,
    g[a, b]         lambda_k * n_a . (K_k nu_b) / dF_k,

with R the clockwise rotation by 90 degrees and n_a the half face normals
(scaled with half the face area), the half face flux out of cell k through half
face a is ``g[a, 0] (p_k - u_0) + g[a, 1] (p_k - u_1)``, with ``u`` the face
pressures. Flux continuity on interior half faces, together with Dirichlet data
or prescribed Neumann fluxes on boundary half faces, gives a small linear system
for the unknown face pressures, which is eliminated to obtain the stencils.
In matrix form the fluxes are ``T p + r`` with ``T = C A^-1 B + F``.

The half face normals of the interaction volume are

    n1: face 12, outward from cell 1,
    n3: face 13, outward from cell 1,
    n4: face 24, outward from cell 2,
    n2: face 34, outward from cell 3,

and cell k uses the normals of its two half faces: cell 1 (n1, n3), cell 2
(n1, n4), cell 3 (n2, n3), cell 4 (n2, n4).

Neumann fluxes are outward mass fluxes per phase, converted to a total
volumetric flux with the phase densities of cell 1.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

import porempfa as pm
from porempfa.numerics.fv.interaction_volume import (
    DegenerateInteractionVolumeError,
    InteractionVolume,
)


@dataclass
class HalfFaceFlux:
    """Affine flux stencil over cell pressures."""

    coefficients: dict[int, float] = field(default_factory=dict)
    constant: float = 0.0

    @classmethod
    def from_row(cls, cells, row, constant: float = 0.0) -> HalfFaceFlux:
        flux = cls(constant=float(constant))
        for c, t in zip(cells, row):
            flux.coefficients[c] = flux.coefficients.get(c, 0.0) + float(t)
        return flux

    def evaluate(self, pressure: np.ndarray) -> float:
        return sum(t * pressure[c] for c, t in self.coefficients.items()) + self.constant


@dataclass
class LocalFluxes:
    """Fluxes out of cell 1 of an interaction volume.

    ``face`` and ``next_face`` are the stencils for the half faces of face 12
    and face 13 at the corner; they are None on Neumann boundary faces. For a
    Neumann face 12, ``neumann`` holds the prescribed flux over the whole face.
    """

    face: Optional[HalfFaceFlux] = None
    next_face: Optional[HalfFaceFlux] = None
    neumann: Optional[float] = None


def rotate(v: np.ndarray) -> np.ndarray:
    """Rotation by 90 degrees clockwise, R = [[0, 1], [-1, 0]]."""
    return np.array([v[1], -v[0]])


def flux_coefficients(
    mobility: float,
    perm: np.ndarray,
    normals: tuple[np.ndarray, np.ndarray],
    nu1: np.ndarray,
    nu2: np.ndarray,
) -> np.ndarray:
    """The 2 x 2 coefficients g[a, b] of one cell.

    Raises:
        DegenerateInteractionVolumeError: If nu1 and nu2 are parallel.

    """
    area = abs(nu1 @ rotate(nu2))
    if area == 0:
        raise DegenerateInteractionVolumeError(
            "Collinear cell and face centers in an interaction volume"
        )
    return mobility * (np.vstack(normals) @ perm @ np.vstack((nu1, nu2)).T) / area


def _solve(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Solve the local system for the face pressures.

    A face pressure seen only by cells with zero permeability has a zero row and
    a zero column in A. It does not influence any flux, and is set to zero.
    """
    active = np.any(A != 0, axis=1)
    if np.any(A[:, ~active] != 0):
        raise DegenerateInteractionVolumeError(
            "Singular local system in an interaction volume"
        )
    x = np.zeros(B.shape)
    if not active.any():
        return x
    try:
        x[active] = np.linalg.solve(A[np.ix_(active, active)], B[active])
    except np.linalg.LinAlgError as err:
        raise DegenerateInteractionVolumeError(
            "Singular local system in an interaction volume"
        ) from err
    return x


def boundary_data(
    problem: pm.TwoPhaseProblem,
    variables: pm.Variables,
    intersection: pm.Intersection,
    cell: int,
) -> tuple[str, float]:
    """Type and value of the pressure condition on a boundary face.

    Returns:
        ``(pm.DIRICHLET, pressure)`` or ``(pm.NEUMANN, flux)``, where flux is the
        outward total volumetric flux density computed with the densities of
        ``cell``.

    Raises:
        ValueError: For other condition types.

    """
    pos = intersection.center
    bc_type = problem.bc_type_pressure(pos, intersection)
    if bc_type == pm.DIRICHLET:
        return bc_type, float(problem.dirichlet_pressure(pos, intersection))
    elif bc_type == pm.NEUMANN:
        J = problem.neumann_pressure(pos, intersection)
        flux = (
            J[pm.WETTING] / variables.density_wetting[cell]
            + J[pm.NONWETTING] / variables.density_nonwetting[cell]
        )
        return bc_type, float(flux)
    raise ValueError(
        f"Unknown pressure boundary condition {bc_type} on face {intersection.face}"
    )


def local_fluxes(
    iv: InteractionVolume,
    problem: pm.TwoPhaseProblem,
    variables: pm.Variables,
) -> LocalFluxes:
    """Flux stencils of cell 1 of an interaction volume.

    The mobilities of the four cells are the total upwind mobilities stored in
    the slots of face 12 of cell 1.

    Parameters:
        iv: The interaction volume.
        problem: Provides grid, permeabilities and boundary conditions.
        variables: Provides upwind mobilities and densities.

    Returns:
        The half face stencils, and the Neumann flux of face 12 if any.

    Raises:
        DegenerateInteractionVolumeError: For degenerate geometry or singular
            local systems.
        ValueError: For boundary condition types other than Dirichlet and
            Neumann.

    """
    grid = problem.grid
    spatial = problem.spatial_params
    mobility = variables.upwind_total_mobility(iv.cell, iv.face.index_in_inside)

    face, next_face = iv.face, iv.next_face
    c1 = iv.cell
    x1 = grid.cell_centers[:2, c1]
    K1 = spatial.intrinsic_permeability(x1, c1)
    xf12, xf13 = face.center, next_face.center
    n1 = face.unit_normal * face.area / 2
    n3 = next_face.unit_normal * next_face.area / 2

    g1 = flux_coefficients(
        mobility[0], K1, (n1, n3), rotate(xf13 - x1), rotate(x1 - xf12)
    )

    g2 = g3 = g4 = None
    if face.neighbor:
        c2 = iv.cell2
        x2 = grid.cell_centers[:2, c2]
        xf24 = iv.face24.center
        n4 = iv.face24.unit_normal * iv.face24.area / 2
        g2 = flux_coefficients(
            mobility[1],
            spatial.intrinsic_permeability(x2, c2),
            (n1, n4),
            rotate(xf24 - x2),
            rotate(xf12 - x2),
        )
    if next_face.neighbor:
        c3 = iv.cell3
        x3 = grid.cell_centers[:2, c3]
        xf34 = iv.face34.center
        n2 = iv.face34.unit_normal * iv.face34.area / 2
        g3 = flux_coefficients(
            mobility[2],
            spatial.intrinsic_permeability(x3, c3),
            (n2, n3),
            rotate(x3 - xf13),
            rotate(x3 - xf34),
        )
    if iv.cell4 is not None:
        c4 = iv.cell4
        x4 = grid.cell_centers[:2, c4]
        g4 = flux_coefficients(
            mobility[3],
            spatial.intrinsic_permeability(x4, c4),
            (n2, n4),
            rotate(x4 - xf24),
            rotate(xf34 - x4),
        )

    if face.neighbor and next_face.neighbor:
        return _interior_fluxes(iv, g1, g2, g3, g4)
    elif face.neighbor:
        return _next_face_on_boundary(iv, problem, variables, g1, g2)
    return _face_on_boundary(iv, problem, variables, g1, g3)


def _interior_fluxes(iv, g1, g2, g3, g4) -> LocalFluxes:
    """Four cells; unknowns are the pressures on the four half faces."""
    # Rows: half faces 12, 34, 13, 24. Columns of B, C, F: cells 1, 2, 3, 4.
    C = np.array(
        [
            [-g1[0, 0], 0, -g1[0, 1], 0],
            [0, g4[0, 0], 0, g4[0, 1]],
            [0, -g3[1, 0], g3[1, 1], 0],
            [g2[1, 0], 0, 0, -g2[1, 1]],
        ]
    )
    F = np.zeros((4, 4))
    F[0, 0] = g1[0, 0] + g1[0, 1]
    F[1, 3] = -g4[0, 0] - g4[0, 1]
    F[2, 2] = g3[1, 0] - g3[1, 1]
    F[3, 1] = -g2[1, 0] + g2[1, 1]

    A = np.array(
        [
            [g1[0, 0] + g2[0, 0], 0, g1[0, 1], -g2[0, 1]],
            [0, g4[0, 0] + g3[0, 0], -g3[0, 1], g4[0, 1]],
            [g1[1, 0], -g3[1, 0], g3[1, 1] + g1[1, 1], 0],
            [-g2[1, 0], g4[1, 0], 0, g2[1, 1] + g4[1, 1]],
        ]
    )
    B = np.zeros((4, 4))
    B[0, 0] = g1[0, 0] + g1[0, 1]
    B[0, 1] = g2[0, 0] - g2[0, 1]
    B[1, 2] = g3[0, 0] - g3[0, 1]
    B[1, 3] = g4[0, 0] + g4[0, 1]
    B[2, 0] = g1[1, 0] + g1[1, 1]
    B[2, 2] = -g3[1, 0] + g3[1, 1]
    B[3, 1] = -g2[1, 0] + g2[1, 1]
    B[3, 3] = g4[1, 0] + g4[1, 1]

    T = F + C @ _solve(A, B)
    cells = iv.cells()
    return LocalFluxes(
        face=HalfFaceFlux.from_row(cells, T[0]),
        next_face=HalfFaceFlux.from_row(cells, T[2]),
    )


def _next_face_on_boundary(iv, problem, variables, g1, g2) -> LocalFluxes:
    """Cells 1 and 2; face 13 and face 24 are on the boundary."""
    c1, c2 = iv.cell, iv.cell2
    bc13, value13 = boundary_data(problem, variables, iv.next_face, c1)
    bc24, value24 = boundary_data(problem, variables, iv.face24, c1)
    area13, area24 = iv.next_face.area, iv.face24.area

    if bc13 == pm.NEUMANN:
        if bc24 == pm.NEUMANN:
            A = np.array(
                [
                    [g1[0, 0] + g2[0, 0], g1[0, 1], -g2[0, 1]],
                    [g1[1, 0], g1[1, 1], 0],
                    [-g2[1, 0], 0, g2[1, 1]],
                ]
            )
            B = np.array(
                [
                    [g1[0, 0] + g1[0, 1], g2[0, 0] - g2[0, 1]],
                    [g1[1, 0] + g1[1, 1], 0],
                    [0, g2[1, 1] - g2[1, 0]],
                ]
            )
            r1 = np.array([0, -value13 * area13 / 2, -value24 * area24 / 2])
        else:
            A = np.array(
                [
                    [g1[0, 0] + g2[0, 0], g1[0, 1]],
                    [g1[1, 0], g1[1, 1]],
                ]
            )
            B = np.array(
                [
                    [g1[0, 0] + g1[0, 1], g2[0, 0] - g2[0, 1]],
                    [g1[1, 0] + g1[1, 1], 0],
                ]
            )
            r1 = np.array([g2[0, 1] * value24, -value13 * area13 / 2])
        T = _solve(A, B)
        r = _solve(A, r1)
        # Face pressures: row 0 on face 12, row 1 on face 13
        flux12 = HalfFaceFlux(
            {
                c1: g1[0, 0] + g1[0, 1] - g1[0, 0] * T[0, 0] - g1[0, 1] * T[1, 0],
                c2: -g1[0, 0] * T[0, 1] - g1[0, 1] * T[1, 1],
            },
            -(g1[0, 0] * r[0] + g1[0, 1] * r[1]),
        )
        return LocalFluxes(face=flux12)

    g3_value = value13
    if bc24 == pm.NEUMANN:
        A = np.array(
            [
                [g1[0, 0] + g2[0, 0], -g2[0, 1]],
                [-g2[1, 0], g2[1, 1]],
            ]
        )
        B = np.array(
            [
                [g1[0, 0] + g1[0, 1], g2[0, 0] - g2[0, 1]],
                [0, g2[1, 1] - g2[1, 0]],
            ]
        )
        r1 = np.array([-g1[0, 1] * g3_value, -value24 * area24 / 2])
        T = _solve(A, B)
        r = _solve(A, r1)
        flux12 = HalfFaceFlux(
            {c1: g1[0, 0] + g1[0, 1] - g1[0, 0] * T[0, 0], c2: -g1[0, 0] * T[0, 1]},
            -(g1[0, 1] * g3_value + g1[0, 0] * r[0]),
        )
        flux13 = HalfFaceFlux(
            {c1: g1[1, 0] + g1[1, 1] - g1[1, 0] * T[0, 0], c2: -g1[1, 0] * T[0, 1]},
            -(g1[1, 1] * g3_value + g1[1, 0] * r[0]),
        )
        return LocalFluxes(face=flux12, next_face=flux13)

    # Dirichlet on both boundary faces: one unknown face pressure on face 12
    g4_value = value24
    coe = g1[0, 0] + g2[0, 0]
    flux12 = HalfFaceFlux(
        {
            c1: g2[0, 0] * (g1[0, 0] + g1[0, 1]) / coe,
            c2: -g1[0, 0] * (g2[0, 0] - g2[0, 1]) / coe,
        },
        -(g4_value * g2[0, 1] * g1[0, 0] + g3_value * g2[0, 0] * g1[0, 1]) / coe,
    )
    flux13 = HalfFaceFlux(
        {
            c1: g1[1, 1] + g1[1, 0] * (g2[0, 0] - g1[0, 1]) / coe,
            c2: -g1[1, 0] * (g2[0, 0] - g2[0, 1]) / coe,
        },
        -g1[1, 1] * g3_value
        + (g3_value * g1[1, 0] * g1[0, 1] - g4_value * g1[1, 0] * g2[0, 1]) / coe,
    )
    return LocalFluxes(face=flux12, next_face=flux13)


def _face_on_boundary(iv, problem, variables, g1, g3) -> LocalFluxes:
    """Face 12 on the boundary; face 13 on the boundary or towards cell 3."""
    c1 = iv.cell
    bc12, value12 = boundary_data(problem, variables, iv.face, c1)
    area12 = iv.face.area

    if bc12 == pm.NEUMANN:
        fluxes = LocalFluxes(neumann=value12 * area12)
        J1 = value12
        if iv.next_face.boundary:
            bc13, value13 = boundary_data(problem, variables, iv.next_face, c1)
            if bc13 == pm.DIRICHLET:
                fluxes.next_face = HalfFaceFlux(
                    {c1: g1[1, 1] - g1[1, 0] * g1[0, 1] / g1[0, 0]},
                    (g1[1, 0] * g1[0, 1] / g1[0, 0] - g1[1, 1]) * value13
                    - g1[1, 0] * (-J1) * area12 / (2 * g1[0, 0]),
                )
            return fluxes

        c3 = iv.cell3
        bc34, value34 = boundary_data(problem, variables, iv.face34, c1)
        if bc34 == pm.NEUMANN:
            J2 = value34
            C = np.array(
                [
                    [-g1[0, 0], 0, -g1[0, 1]],
                    [0, -g3[0, 0], g3[0, 1]],
                    [0, -g3[1, 0], g3[1, 1]],
                ]
            )
            F = np.array(
                [
                    [g1[0, 0] + g1[0, 1], 0],
                    [0, g3[0, 0] - g3[0, 1]],
                    [0, g3[1, 0] - g3[1, 1]],
                ]
            )
            A = np.array(
                [
                    [g1[0, 0], 0, g1[0, 1]],
                    [0, g3[0, 0], -g3[0, 1]],
                    [g1[1, 0], -g3[1, 0], g3[1, 1] + g1[1, 1]],
                ]
            )
            B = np.array(
                [
                    [g1[0, 0] + g1[0, 1], 0],
                    [0, g3[0, 0] - g3[0, 1]],
                    [g1[1, 0] + g1[1, 1], g3[1, 1] - g3[1, 0]],
                ]
            )
            r1 = np.array([-J1 * area12 / 2, -J2 * iv.face34.area / 2, 0])
            T = F + C @ _solve(A, B)
            r = C @ _solve(A, r1)
            fluxes.next_face = HalfFaceFlux({c1: T[2, 0], c3: T[2, 1]}, r[2])
        else:
            g2_value = value34
            C = np.array([[-g1[0, 0], -g1[0, 1]], [0, g3[1, 1]]])
            F = np.array(
                [[g1[0, 0] + g1[0, 1], 0], [0, g3[1, 0] - g3[1, 1]]]
            )
            A = np.array(
                [[g1[0, 0], g1[0, 1]], [g1[1, 0], g3[1, 1] + g1[1, 1]]]
            )
            B = np.array(
                [
                    [g1[0, 0] + g1[0, 1], 0],
                    [g1[1, 0] + g1[1, 1], g3[1, 1] - g3[1, 0]],
                ]
            )
            r2 = np.array([-J1 * area12 / 2, g3[1, 0] * g2_value])
            T = F + C @ _solve(A, B)
            r = C @ _solve(A, r2) + np.array([0, -g3[1, 0] * g2_value])
            fluxes.next_face = HalfFaceFlux({c1: T[1, 0], c3: T[1, 1]}, r[1])
        return fluxes

    g1_value = value12
    if iv.next_face.boundary:
        bc13, value13 = boundary_data(problem, variables, iv.next_face, c1)
        if bc13 == pm.DIRICHLET:
            g3_value = value13
            return LocalFluxes(
                face=HalfFaceFlux(
                    {c1: g1[0, 0] + g1[0, 1]},
                    -(g1[0, 0] * g1_value + g1[0, 1] * g3_value),
                ),
                next_face=HalfFaceFlux(
                    {c1: g1[1, 0] + g1[1, 1]},
                    -(g1[1, 0] * g1_value + g1[1, 1] * g3_value),
                ),
            )
        J3 = value13
        T = g1[0, 0] - g1[1, 0] * g1[0, 1] / g1[1, 1]
        r = -T * g1_value - g1[0, 1] * (-J3) * iv.next_face.area / (2 * g1[1, 1])
        return LocalFluxes(face=HalfFaceFlux({c1: T}, r))

    c3 = iv.cell3
    bc34, value34 = boundary_data(problem, variables, iv.face34, c1)
    if bc34 == pm.DIRICHLET:
        g2_value = value34
        coe = g1[1, 1] + g3[1, 1]
        flux12 = HalfFaceFlux(
            {
                c1: g1[0, 0] + g1[0, 1] * (g3[1, 1] - g1[1, 0]) / coe,
                c3: -g1[0, 1] * (g3[1, 1] - g3[1, 0]) / coe,
            },
            -g1[0, 0] * g1_value
            + (
                g1_value * g1[0, 1] * g1[1, 0]
                - g2_value * g3[1, 0] * g1[0, 1]
            )
            / coe,
        )
        flux13 = HalfFaceFlux(
            {
                c1: g3[1, 1] * (g1[1, 0] + g1[1, 1]) / coe,
                c3: -g1[1, 1] * (g3[1, 1] - g3[1, 0]) / coe,
            },
            -(g1_value * g1[1, 0] * g3[1, 1] + g2_value * g1[1, 1] * g3[1, 0])
            / coe,
        )
        return LocalFluxes(face=flux12, next_face=flux13)

    J2 = value34
    # Face pressures: row 0 on face 34, row 1 on face 13
    A = np.array(
        [[g3[0, 0], -g3[0, 1]], [-g3[1, 0], g1[1, 1] + g3[1, 1]]]
    )
    B = np.array(
        [[0, g3[0, 0] - g3[0, 1]], [g1[1, 0] + g1[1, 1], g3[1, 1] - g3[1, 0]]]
    )
    r1 = np.array([-J2 * iv.face34.area / 2, -g1[1, 0] * g1_value])
    T = _solve(A, B)
    r = _solve(A, r1)
    flux12 = HalfFaceFlux(
        {c1: g1[0, 0] + g1[0, 1] - g1[0, 1] * T[1, 0], c3: -g1[0, 1] * T[1, 1]},
        -(g1[0, 0] * g1_value + g1[0, 1] * r[1]),
    )
    flux13 = HalfFaceFlux(
        {c1: g1[1, 0] + g1[1, 1] - g1[1, 1] * T[1, 0], c3: -g1[1, 1] * T[1, 1]},
        -(g1[1, 0] * g1_value + g1[1, 1] * r[1]),
    )
    return LocalFluxes(face=flux12, next_face=flux13)
