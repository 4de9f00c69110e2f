""" Module containing classes for structured two-dimensional grids.

Acknowledgements:
    The implementation of structured grids is in practice a translation of the
    corresponding functions found in the Matlab Reservoir Simulation Toolbox
    (MRST) developed by SINTEF ICT, see www.sintef.no/projectweb/mrst/

"""
import numpy as np
import scipy.sparse as sps

from porempfa.grids.grid import FaceOrdering, Grid


class TensorGrid(Grid):
    """Representation of grid formed by a tensor product of line point
    distributions.

    The faces of every cell are stored in the order west, east, south, north.

    For information on attributes and methods, see the documentation of the
    parent Grid class.

    """

    def __init__(self, x, y, name=None, face_ordering=FaceOrdering.TENSOR):
        """
        Constructor for 2D tensor grid

        Parameters
            x (np.ndarray): Node coordinates in x-direction
            y (np.ndarray): Node coordinates in y-direction.
            name (str): Name of grid, passed to super constructor
            face_ordering (FaceOrdering): Face ordering of the grid. Must be one
                of the orderings storing faces as west, east, south, north.
        """
        if name is None:
            name = "TensorGrid"

        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        nodes, face_nodes, cell_faces = self._create_2d_grid(x, y)
        self.cart_dims = np.array([x.size, y.size]) - 1
        super().__init__(2, nodes, face_nodes, cell_faces, name, face_ordering)

    def _create_2d_grid(self, nodes_x, nodes_y):
        """
        Compute grid topology for 2D grids.

        Nodes are numbered lexicographically, x running fastest. Faces with
        normal in x-direction come first, followed by those with normal in
        y-direction.

        """

        num_x = nodes_x.size - 1
        num_y = nodes_y.size - 1

        num_cells = num_x * num_y
        num_nodes = (num_x + 1) * (num_y + 1)
        num_faces_x = (num_x + 1) * num_y
        num_faces_y = num_x * (num_y + 1)
        num_faces = num_faces_x + num_faces_y

        x_coord, y_coord = np.meshgrid(nodes_x, nodes_y)

        nodes = np.vstack(
            (x_coord.flatten(), y_coord.flatten(), np.zeros(x_coord.size))
        )

        # Face nodes
        node_array = np.arange(0, num_nodes).reshape(num_y + 1, num_x + 1)
        fn1 = node_array[:-1, ::].ravel(order="C")
        fn2 = node_array[1:, ::].ravel(order="C")
        face_nodes_x = np.vstack((fn1, fn2)).ravel(order="F")

        fn1 = node_array[::, :-1].ravel(order="C")
        fn2 = node_array[::, 1:].ravel(order="C")
        face_nodes_y = np.vstack((fn1, fn2)).ravel(order="F")

        num_nodes_per_face = 2
        indptr = np.append(
            np.arange(0, num_nodes_per_face * num_faces, num_nodes_per_face),
            num_nodes_per_face * num_faces,
        )
        face_nodes = np.hstack((face_nodes_x, face_nodes_y))
        data = np.ones(face_nodes.shape, dtype=bool)
        face_nodes = sps.csc_matrix(
            (data, face_nodes, indptr), shape=(num_nodes, num_faces)
        )

        # Cell faces
        face_x = np.arange(num_faces_x).reshape(num_y, num_x + 1)
        face_y = num_faces_x + np.arange(num_faces_y).reshape(num_y + 1, num_x)

        face_west = face_x[::, :-1].ravel(order="C")
        face_east = face_x[::, 1:].ravel(order="C")
        face_south = face_y[:-1, ::].ravel(order="C")
        face_north = face_y[1:, ::].ravel(order="C")

        # The column order west, east, south, north is what FaceOrdering.TENSOR
        # and FaceOrdering.CARTESIAN rely on.
        cell_faces = np.vstack((face_west, face_east, face_south, face_north)).ravel(
            order="F"
        )

        num_faces_per_cell = 4
        indptr = np.append(
            np.arange(0, num_faces_per_cell * num_cells, num_faces_per_cell),
            num_faces_per_cell * num_cells,
        )
        data = np.vstack(
            (
                -np.ones(face_west.size),
                np.ones(face_east.size),
                -np.ones(face_south.size),
                np.ones(face_north.size),
            )
        ).ravel(order="F")
        cell_faces = sps.csc_matrix(
            (data, cell_faces, indptr), shape=(num_faces, num_cells)
        )
        return nodes, face_nodes, cell_faces


class CartGrid(TensorGrid):
    """Representation of a 2D Cartesian grid.

    For information on attributes and methods, see the documentation of the
    parent Grid class.

    """

    def __init__(self, nx, physdims=None):
        """
        Constructor for Cartesian grid

        Parameters
        ----------
        nx (np.ndarray): Number of cells in each direction.
        physdims (np.ndarray): Physical dimensions in each direction.
            Defaults to same as nx, that is, cells of unit size.
        """
        if physdims is None:
            physdims = nx

        nx = np.asarray(nx)
        physdims = np.asarray(physdims, dtype=float)
        if nx.shape != (2,) or physdims.shape != (2,):
            raise ValueError("Cartesian grid only implemented for two dimensions")

        nodes_x = np.linspace(0, physdims[0], nx[0] + 1)
        nodes_y = np.linspace(0, physdims[1], nx[1] + 1)
        super().__init__(
            nodes_x, nodes_y, name="CartGrid", face_ordering=FaceOrdering.CARTESIAN
        )
