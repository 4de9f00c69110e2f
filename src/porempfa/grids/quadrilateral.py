"""Unstructured, conforming quadrilateral grids.

The faces of every cell are stored anticlockwise, so the grid uses
:attr:`~porempfa.grids.grid.FaceOrdering.CYCLIC`.
"""
from __future__ import annotations

import numpy as np
import scipy.sparse as sps

from porempfa.grids.grid import FaceOrdering, Grid


class QuadGrid(Grid):
    """Grid of convex quadrilaterals given by node coordinates and cell-node lists.

    Parameters:
        nodes: ``shape=(2, num_nodes)`` or ``shape=(3, num_nodes)``

            Node coordinates.
        cell_nodes: ``shape=(num_cells, 4)``

            The four nodes of each cell, ordered anticlockwise. Face ``k`` of a
            cell connects node ``k`` and node ``k + 1`` (cyclically).
        name: ``default="QuadGrid"``

    Raises:
        ValueError: If a cell is not given by four nodes or its nodes are ordered
            clockwise.

    """

    def __init__(
        self, nodes: np.ndarray, cell_nodes: np.ndarray, name: str = "QuadGrid"
    ) -> None:
        nodes = np.asarray(nodes, dtype=float)
        if nodes.shape[0] == 2:
            nodes = np.vstack((nodes, np.zeros(nodes.shape[1])))
        cell_nodes = np.atleast_2d(np.asarray(cell_nodes, dtype=int))
        if cell_nodes.shape[1] != 4:
            raise ValueError("QuadGrid cells must have exactly four nodes")

        face_nodes, cell_faces = self._create_topology(nodes, cell_nodes)
        self.cell_node_list = cell_nodes
        super().__init__(
            2, nodes, face_nodes, cell_faces, name, FaceOrdering.CYCLIC
        )

    @staticmethod
    def _create_topology(nodes, cell_nodes):
        num_nodes = nodes.shape[1]
        face_index: dict[tuple[int, int], int] = {}
        face_list: list[tuple[int, int]] = []
        cf_rows, cf_data = [], []

        for c, cn in enumerate(cell_nodes):
            x, y = nodes[0, cn], nodes[1, cn]
            signed_area = 0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y)
            if signed_area <= 0:
                raise ValueError(f"Nodes of cell {c} are not ordered anticlockwise")

            for k in range(4):
                a, b = int(cn[k]), int(cn[(k + 1) % 4])
                key = (min(a, b), max(a, b))
                if key in face_index:
                    # Second cell of the face sees it in the opposite direction
                    cf_rows.append(face_index[key])
                    cf_data.append(-1)
                else:
                    face_index[key] = len(face_list)
                    face_list.append((a, b))
                    cf_rows.append(face_index[key])
                    cf_data.append(1)

        num_faces = len(face_list)
        num_cells = cell_nodes.shape[0]

        indptr = np.arange(0, 2 * num_faces + 1, 2)
        face_nodes = sps.csc_matrix(
            (
                np.ones(2 * num_faces, dtype=bool),
                np.array(face_list, dtype=int).ravel(),
                indptr,
            ),
            shape=(num_nodes, num_faces),
        )

        indptr = np.arange(0, 4 * num_cells + 1, 4)
        cell_faces = sps.csc_matrix(
            (np.array(cf_data, dtype=float), np.array(cf_rows, dtype=int), indptr),
            shape=(num_faces, num_cells),
        )
        return face_nodes, cell_faces
