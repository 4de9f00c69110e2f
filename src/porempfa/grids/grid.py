"""Module containing the two-dimensional grid class consumed by the MPFA-O
discretization.

See documentation of class :class:`Grid` for further details.

.. rubric:: Acknowledgements
    The data structure for the grid (node coordinates, a face-node map and a
    signed cell-face map) follows the one used in the
    `Matlab Reservoir Simulation Toolbox (MRST) <www.sintef.no/projectweb/mrst/>`_
    developed by SINTEF ICT.

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
from scipy import sparse as sps

import porempfa as pm

module_sections = ["grids"]


class FaceOrdering(Enum):
    """Native enumeration order of the faces of a cell.

    ``CARTESIAN`` and ``TENSOR`` grids store the faces of every cell in the order
    west, east, south, north. ``CYCLIC`` grids store them anticlockwise around
    the cell, starting from an arbitrary face.

    """

    CARTESIAN = "cartesian"
    TENSOR = "tensor"
    CYCLIC = "cyclic"


@dataclass(eq=False)
class Intersection:
    """A face seen from one of its adjacent cells.

    The outward direction is always taken with respect to the ``inside`` cell.

    """

    inside: int
    """Index of the cell the face is seen from."""
    face: int
    """Global face index."""
    index_in_inside: int
    """Local index of the face among the faces of ``inside``."""
    outside: Optional[int]
    """Index of the cell across the face, ``None`` on the boundary."""
    index_in_outside: Optional[int]
    """Local index of the face among the faces of ``outside``."""
    center: np.ndarray
    """Face center, ``shape=(2,)``."""
    area: float
    """Face area (length in 2d)."""
    unit_normal: np.ndarray
    """Unit normal pointing out of ``inside``, ``shape=(2,)``."""
    nodes: np.ndarray
    """Global indices of the two nodes spanning the face."""
    corners: np.ndarray
    """Coordinates of the two nodes, ``shape=(2, 2)``, one corner per row."""

    @property
    def neighbor(self) -> bool:
        """True if the face has a cell on both sides."""
        return self.outside is not None

    @property
    def boundary(self) -> bool:
        """True if the face is on the domain boundary."""
        return self.outside is None


class Grid:
    """Parent class for the two-dimensional grids.

    The grid stores topological information, as well as geometric information.
    Geometric information requires calling :meth:`compute_geometry` to be
    initialized.

    Every face must be spanned by exactly two nodes and shared by at most two
    cells. Cells are assumed convex. The topology admits polygonal cells, but the
    MPFA-O pressure model and the per-face arrays of :class:`~porempfa.Variables`
    require quadrilaterals, with exactly four faces per cell.

    Parameters:
        dim: Grid dimension. Only 2 is supported.
        nodes: ``shape=(3, num_nodes)``

            Node coordinates. The third coordinate is ignored.
        face_nodes: ``shape=(num_nodes, num_faces)``

            A map from faces to the two nodes spanning the face.
        cell_faces: ``shape=(num_faces, num_cells)``

            A signed map from cells to faces bordering the respective cell. The
            order of the faces of a cell, as stored in the column of the cell,
            is the native face order, interpreted through ``face_ordering``.
        name: Name of grid.
        face_ordering: ``default=FaceOrdering.CYCLIC``

            Rule mapping the native face order to the anticlockwise one.

    Raises:
        ValueError: If the grid is not two-dimensional, or a face is not spanned
            by two nodes or is shared by more than two cells.

    """

    def __init__(
        self,
        dim: int,
        nodes: np.ndarray,
        face_nodes: sps.csc_matrix,
        cell_faces: sps.csc_matrix,
        name: str = "Grid",
        face_ordering: FaceOrdering = FaceOrdering.CYCLIC,
    ) -> None:
        if dim != 2:
            raise ValueError("Only two-dimensional grids are supported")

        self.dim: int = dim
        """Grid dimension."""
        self.nodes: np.ndarray = nodes
        """Node coordinates, ``shape=(3, num_nodes)``."""
        self.face_nodes: sps.csc_matrix = face_nodes
        self.cell_faces: sps.csc_matrix = cell_faces
        self.name: str = name
        self.face_ordering = face_ordering
        """Native face order, see :class:`FaceOrdering`."""

        self.num_nodes: int = nodes.shape[1]
        self.num_faces: int = face_nodes.shape[1]
        self.num_cells: int = cell_faces.shape[1]

        self._build_topology()
        self._intersections: Optional[list[list[Intersection]]] = None

        # NOTE: These attributes are defined in compute_geometry.
        self.face_areas: np.ndarray
        """Areas of all faces ``(shape=(num_faces,))``."""
        self.face_centers: np.ndarray
        """Centers of all faces ``(shape=(3, num_faces))``."""
        self.face_normals: np.ndarray
        """Face normals scaled with the face area ``(shape=(3, num_faces))``.

        The sign of the normal relative to a cell is given by :attr:`cell_faces`.

        """
        self.cell_centers: np.ndarray
        """Cell centroids ``(shape=(3, num_cells))``."""
        self.cell_volumes: np.ndarray
        """Cell volumes ``(shape=(num_cells,))``."""

    def __repr__(self) -> str:
        return (
            f"Grid with name {self.name} and dimension {self.dim}, "
            f"{self.num_cells} cells, {self.num_faces} faces, {self.num_nodes} "
            f"nodes. Face ordering: {self.face_ordering}."
        )

    def __str__(self) -> str:
        s = f"Grid with name {self.name} and dimension {self.dim}.\n"
        s += f"Number of cells {self.num_cells}\n"
        s += f"Number of faces {self.num_faces}\n"
        s += f"Number of nodes {self.num_nodes}\n"
        return s

    def _build_topology(self) -> None:
        """Extract the native face order of the cells and the cells of each face."""
        fn_ptr = self.face_nodes.indptr
        if np.any(np.diff(fn_ptr) != 2):
            raise ValueError("All faces must be spanned by exactly two nodes")
        # Start and end node of each face, in the stored order.
        self._face_node_pairs = self.face_nodes.indices.reshape((-1, 2)).copy()

        cf = self.cell_faces
        self._faces_of_cell = [
            cf.indices[cf.indptr[c] : cf.indptr[c + 1]].copy()
            for c in range(self.num_cells)
        ]
        self._signs_of_cell = [
            cf.data[cf.indptr[c] : cf.indptr[c + 1]].copy()
            for c in range(self.num_cells)
        ]

        self.face_cells = -np.ones((2, self.num_faces), dtype=int)
        """Cells on each side of a face, -1 where there is none,
        ``shape=(2, num_faces)``."""
        counter = np.zeros(self.num_faces, dtype=int)
        for c, faces in enumerate(self._faces_of_cell):
            for f in faces:
                if counter[f] == 2:
                    raise ValueError(f"Face {f} is shared by more than two cells")
                self.face_cells[counter[f], f] = c
                counter[f] += 1

    @pm.time_logger(sections=module_sections)
    def compute_geometry(self) -> None:
        """Compute geometric quantities for the grid.

        The face normal is a 90 degree clockwise rotation of the face tangent,
        flipped where needed so that its direction agrees with the signs in
        :attr:`cell_faces`. Cell volumes and centroids are computed from the
        triangles spanned by a temporary cell center and each face.

        """
        start = self.nodes[:, self._face_node_pairs[:, 0]]
        end = self.nodes[:, self._face_node_pairs[:, 1]]
        tangent = end - start
        self.face_areas = np.sqrt(np.square(tangent[:2]).sum(axis=0))
        self.face_centers = 0.5 * (start + end)
        self.face_normals = np.vstack(
            (tangent[1], -tangent[0], np.zeros(self.num_faces))
        )

        faceno, cellno, cf_orient = sps.find(self.cell_faces)

        # Temporary cell centers as average of the face centers
        cx = np.bincount(cellno, weights=self.face_centers[0, faceno])
        cy = np.bincount(cellno, weights=self.face_centers[1, faceno])
        temp_cell_centers = np.vstack((cx, cy)) / np.bincount(cellno)

        subsimplex_heights = (
            self.face_centers[:2, faceno] - temp_cell_centers[:, cellno]
        )
        subsimplex_volumes = 0.5 * np.abs(
            subsimplex_heights[0] * tangent[1, faceno]
            - subsimplex_heights[1] * tangent[0, faceno]
        )

        # Flip the normals which point into the cell where cell_faces says out.
        flip = (
            cf_orient
            * np.sum(subsimplex_heights * self.face_normals[:2, faceno], axis=0)
        ) < 0
        flip = np.bincount(faceno, weights=flip, minlength=self.num_faces).astype(
            bool
        )
        self.face_normals[:, flip] *= -1

        self.cell_volumes = np.bincount(cellno, weights=subsimplex_volumes)
        if np.any(self.cell_volumes <= 0):
            raise ValueError("Found cells with zero volume")

        sub_centroids = (
            temp_cell_centers[:, cellno] + 2 * self.face_centers[:2, faceno]
        ) / 3
        ccx = np.bincount(cellno, weights=subsimplex_volumes * sub_centroids[0])
        ccy = np.bincount(cellno, weights=subsimplex_volumes * sub_centroids[1])
        self.cell_centers = np.vstack(
            (ccx, ccy, np.zeros(self.num_cells))
        ) / self.cell_volumes

        # Face handles depend on the geometry
        self._intersections = None

    def num_cell_faces(self, c: int) -> int:
        """Number of faces of cell c."""
        return self._faces_of_cell[c].size

    def intersections(self, c: int) -> list[Intersection]:
        """Face handles of a cell, in the native face order.

        Parameters:
            c: Cell index.

        Returns:
            One :class:`Intersection` per face of the cell. Element ``i`` has
            ``index_in_inside == i``.

        """
        if self._intersections is None:
            if not hasattr(self, "face_areas"):
                raise ValueError("Call compute_geometry before accessing faces")
            self._intersections = [
                self._cell_intersections(ci) for ci in range(self.num_cells)
            ]
        return self._intersections[c]

    def _cell_intersections(self, c: int) -> list[Intersection]:
        faces = self._faces_of_cell[c]
        signs = self._signs_of_cell[c]
        handles = []
        for i, (f, sgn) in enumerate(zip(faces, signs)):
            cells = self.face_cells[:, f]
            other = cells[1] if cells[0] == c else cells[0]
            outside: Optional[int] = None
            index_in_outside: Optional[int] = None
            if other >= 0:
                outside = int(other)
                index_in_outside = int(
                    np.flatnonzero(self._faces_of_cell[outside] == f)[0]
                )
            pair = self._face_node_pairs[f]
            handles.append(
                Intersection(
                    inside=c,
                    face=int(f),
                    index_in_inside=i,
                    outside=outside,
                    index_in_outside=index_in_outside,
                    center=self.face_centers[:2, f].copy(),
                    area=float(self.face_areas[f]),
                    unit_normal=np.sign(sgn)
                    * self.face_normals[:2, f]
                    / self.face_areas[f],
                    nodes=pair.copy(),
                    corners=self.nodes[:2, pair].T.copy(),
                )
            )
        return handles

    def next_face(self, c: int, local_index: int) -> int:
        """Local index of the face following a given face anticlockwise.

        This is the single place where the native face order of the grid is
        translated into the anticlockwise order the interaction volumes are
        built on.

        Parameters:
            c: Cell index.
            local_index: Local index of the current face.

        Returns:
            Local index of the next face, anticlockwise around the cell.

        Raises:
            NotImplementedError: If the face ordering of the grid is not known.

        """
        n = self.num_cell_faces(c)
        if self.face_ordering in (FaceOrdering.CARTESIAN, FaceOrdering.TENSOR):
            # west -> south -> east -> north -> west
            if local_index + 1 == n:
                return 0
            elif local_index + 2 == n:
                return 1
            return local_index + 2
        elif self.face_ordering == FaceOrdering.CYCLIC:
            return (local_index + 1) % n
        raise NotImplementedError(
            f"Face ordering {self.face_ordering} can not be used with the MPFA-O "
            "discretization"
        )

    def next_intersection(self, c: int, local_index: int) -> Intersection:
        """Handle of the face following ``local_index`` anticlockwise."""
        return self.intersections(c)[self.next_face(c, local_index)]

    def cell_neighbors(self, c: int) -> list[int]:
        """Cells sharing a face with cell c, in the native face order."""
        neighbors = []
        for f in self._faces_of_cell[c]:
            cells = self.face_cells[:, f]
            other = cells[1] if cells[0] == c else cells[0]
            if other >= 0:
                neighbors.append(int(other))
        return neighbors

    def get_boundary_faces(self) -> np.ndarray:
        """Indices of the faces with only one adjacent cell."""
        return np.flatnonzero(self.face_cells[1] < 0)

    def get_internal_faces(self) -> np.ndarray:
        """Indices of the faces with two adjacent cells."""
        return np.flatnonzero(self.face_cells[1] >= 0)
