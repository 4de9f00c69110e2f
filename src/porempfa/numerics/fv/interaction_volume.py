"""Interaction volumes of the MPFA-O method on quadrilateral grids.

An interaction volume is built for a cell, one of its faces and the face
following it anticlockwise. The two faces share one corner (node), and the
interaction volume consists of the cells around that corner, numbered

    1: the cell itself,
    2: the cell across the face,
    3: the cell across the next face,
    4: the cell opposite the corner, sharing a face with both 2 and 3.

Cells 2, 3 and 4 are absent where the corresponding faces are on the domain
boundary. Faces are named after the cells they separate, so ``face24`` is the
face of cell 2 at the corner (towards cell 4, or on the boundary), ``face34``
the face of cell 3 at the corner, and ``face42``, ``face43`` are the same two
faces seen from cell 4.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

import porempfa as pm


class DegenerateInteractionVolumeError(ValueError):
    """The cells around a corner do not form an interaction volume the MPFA-O
    local systems are defined for."""


@dataclass(eq=False)
class InteractionVolume:
    """Cells and faces around one corner of a cell."""

    cell: int
    face: pm.Intersection
    next_face: pm.Intersection
    corner_node: int
    corner: np.ndarray
    face24: Optional[pm.Intersection] = None
    face34: Optional[pm.Intersection] = None
    cell4: Optional[int] = None
    face42: Optional[pm.Intersection] = None
    face43: Optional[pm.Intersection] = None

    @property
    def cell2(self) -> Optional[int]:
        return self.face.outside

    @property
    def cell3(self) -> Optional[int]:
        return self.next_face.outside

    @property
    def num_cells(self) -> int:
        return sum(c is not None for c in self.cells())

    def cells(self) -> list[Optional[int]]:
        """Cells 1 to 4, ``None`` for absent cells."""
        return [self.cell, self.cell2, self.cell3, self.cell4]


def shared_node(face: pm.Intersection, other: pm.Intersection) -> int:
    """The node shared by two faces.

    Raises:
        DegenerateInteractionVolumeError: If the faces share no node or both.

    """
    common = np.intersect1d(face.nodes, other.nodes)
    if common.size != 1:
        raise DegenerateInteractionVolumeError(
            f"Faces {face.face} and {other.face} of cell {face.inside} share "
            f"{common.size} nodes, expected one"
        )
    return int(common[0])


def find_fourth_cell(grid: pm.Grid, cell: int, cell2: int, cell3: int) -> int:
    """The common neighbor of cell2 and cell3 other than cell.

    Raises:
        DegenerateInteractionVolumeError: If there is no such cell, or more
            than one.

    """
    candidates = set(grid.cell_neighbors(cell2)) & set(grid.cell_neighbors(cell3))
    candidates.discard(cell)
    if len(candidates) != 1:
        raise DegenerateInteractionVolumeError(
            f"Cells {cell2} and {cell3} around cell {cell} have "
            f"{len(candidates)} common neighbors, expected one"
        )
    return candidates.pop()


def _face_at_corner(
    grid: pm.Grid, cell: int, node: int, exclude: int
) -> pm.Intersection:
    """The face of a cell containing a node, other than the face ``exclude``."""
    for intersection in grid.intersections(cell):
        if intersection.face != exclude and node in intersection.nodes:
            return intersection
    raise DegenerateInteractionVolumeError(
        f"Cell {cell} has no second face at node {node}"
    )


def build_interaction_volume(
    grid: pm.Grid, cell: int, local_index: int
) -> InteractionVolume:
    """Interaction volume of a cell, a face and the next face anticlockwise.

    Parameters:
        grid: Grid with computed geometry.
        cell: Index of cell 1.
        local_index: Local index of the face in the cell.

    Returns:
        The interaction volume.

    Raises:
        DegenerateInteractionVolumeError: If the faces share no corner, the cell
            opposite the corner is missing or ambiguous, or the boundary
            configuration at the corner is not one of: both faces interior with
            four cells, one face on the boundary with three cells, both faces on
            the boundary.
        NotImplementedError: If the face ordering of the grid is not known.

    """
    face = grid.intersections(cell)[local_index]
    next_face = grid.next_intersection(cell, local_index)
    node = shared_node(face, next_face)

    iv = InteractionVolume(
        cell=cell,
        face=face,
        next_face=next_face,
        corner_node=node,
        corner=grid.nodes[:2, node].copy(),
    )

    if face.neighbor:
        iv.face24 = _face_at_corner(grid, face.outside, node, face.face)
    if next_face.neighbor:
        iv.face34 = _face_at_corner(grid, next_face.outside, node, next_face.face)

    if face.neighbor and next_face.neighbor:
        cell4 = find_fourth_cell(grid, cell, face.outside, next_face.outside)
        if iv.face24.outside != cell4 or iv.face34.outside != cell4:
            raise DegenerateInteractionVolumeError(
                f"Cell {cell4} does not close the interaction volume of cell "
                f"{cell} at node {node}"
            )
        iv.cell4 = cell4
        faces4 = grid.intersections(cell4)
        iv.face42 = faces4[iv.face24.index_in_outside]
        iv.face43 = faces4[iv.face34.index_in_outside]
    elif face.neighbor and iv.face24.neighbor:
        raise DegenerateInteractionVolumeError(
            f"Node {node} of cell {cell} is on the boundary, but cell "
            f"{face.outside} has an interior face there"
        )
    elif next_face.neighbor and iv.face34.neighbor:
        raise DegenerateInteractionVolumeError(
            f"Node {node} of cell {cell} is on the boundary, but cell "
            f"{next_face.outside} has an interior face there"
        )
    return iv
