""" Module containing the boundary condition class used to tag boundary faces.

Acknowledgements:
    The structure is inspired by the boundary condition representation in the
    Matlab Reservoir Simulation Toolbox (MRST) developed by SINTEF ICT, see
    www.sintef.no/projectweb/mrst/ .

"""
from __future__ import annotations

from typing import Optional, Union

import numpy as np

import porempfa as pm


class BoundaryCondition:
    """Class to store information on boundary conditions for a scalar problem.

    The BCs are specified by face number, and can have type Dirichlet or
    Neumann. All boundary faces are Neumann unless told otherwise.

    Attributes:
        num_faces (int): Number of faces in the grid.
        bf (np.ndarray): Indices of the boundary faces.
        is_neu (np.ndarray boolean, size sd.num_faces): Element i is true if
            face i has been assigned a Neumann condition.
        is_dir (np.ndarray, boolean, size sd.num_faces): Element i is true if
            face i has been assigned a Dirichlet condition.

    """

    def __init__(
        self,
        sd: pm.Grid,
        faces: Optional[np.ndarray] = None,
        cond: Optional[Union[list[str], str]] = None,
    ) -> None:
        """Constructor for BoundaryCondition.

        The conditions are specified by face numbers. Faces that do not get an
        explicit condition will have Neumann conditions assigned.

        Parameters:
            sd (pm.Grid): For which boundary conditions are set.
            faces (np.ndarray): Faces for which conditions are assigned, either as
                indices or as a boolean array of size sd.num_faces.
            cond (list of str): Conditions on the faces, in the same order as
                used in faces. Should be as long as faces. The list elements
                should be one of "dir", "neu". A single string is applied to
                all faces.

        Raises:
            ValueError: If conditions are given on interior faces, the number of
                conditions does not match the number of faces, or an unknown
                condition type is given.

        """
        self.num_faces: int = sd.num_faces
        self.bf: np.ndarray = sd.get_boundary_faces()

        self.is_neu: np.ndarray = np.zeros(self.num_faces, dtype=bool)
        self.is_dir: np.ndarray = np.zeros(self.num_faces, dtype=bool)

        # By default, all boundary faces are Neumann.
        self.is_neu[self.bf] = True

        if faces is not None:
            if cond is None:
                raise ValueError("Conditions must be given together with faces")
            faces = np.asarray(faces)
            if faces.dtype == bool:
                if faces.size != self.num_faces:
                    raise ValueError(
                        "When giving logical faces, the size of array must match "
                        "number of faces"
                    )
                faces = np.flatnonzero(faces)
            faces = np.atleast_1d(faces).astype(int)
            if not np.all(np.isin(faces, self.bf)):
                raise ValueError("Give boundary condition only on the boundary")
            if isinstance(cond, str):
                cond = [cond] * faces.size
            if faces.size != len(cond):
                raise ValueError("One BC per face")

            for ind in np.arange(faces.size):
                s = cond[ind].lower()
                if s == pm.NEUMANN:
                    self.is_neu[faces[ind]] = True
                    self.is_dir[faces[ind]] = False
                elif s == pm.DIRICHLET:
                    self.is_dir[faces[ind]] = True
                    self.is_neu[faces[ind]] = False
                else:
                    raise ValueError("Boundary should be Dirichlet or Neumann")

    def type_of(self, face: int) -> str:
        """Tag of the condition on a boundary face.

        Returns:
            ``pm.DIRICHLET`` or ``pm.NEUMANN``.

        Raises:
            ValueError: If the face carries no condition (interior face).

        """
        if self.is_dir[face]:
            return pm.DIRICHLET
        if self.is_neu[face]:
            return pm.NEUMANN
        raise ValueError(f"No boundary condition defined on face {face}")

    def __repr__(self) -> str:
        s = (
            f"Boundary condition for scalar problem in 2 dimensions\n"
            f"Grid has {self.num_faces} faces, {self.bf.size} on the boundary.\n"
            f"Number of faces with Dirichlet conditions: {self.is_dir.sum()} \n"
            f"Number of faces with Neumann conditions: {self.is_neu.sum()} \n"
        )
        return s


def face_on_side(
    sd: pm.Grid, side: Union[list[str], str], tol: float = 1e-8
) -> list[np.ndarray]:
    """Find faces on specified sides of a grid.

    It is assumed that the grid forms a box.

    The faces are specified by one of two type of keywords: (xmin / west),
    (xmax / east), (ymin / south), (ymax / north).

    Args:
        sd (pm.Grid): Grid for which we want to find faces.
        side (str, or list of str): Sides for which we want to find the
            boundary faces.
        tol (float): Geometric tolerance for deciding whether a face
            lays on the boundary. Defaults to 1e-8.

    Returns:
        list of arrays: Outer list has one element per element in side (same
            ordering). Arrays contain global indices of faces laying on
            that side.

    Raises:
        ValueError if not supported keyword is used to identify a boundary part
    """
    if isinstance(side, str):
        side = [side]

    faces = []
    for s in side:
        s = s.lower().strip()
        if s == "west" or s == "xmin":
            xm = sd.nodes[0].min()
            faces.append(np.flatnonzero(np.abs(sd.face_centers[0] - xm) < tol))
        elif s == "east" or s == "xmax":
            xm = sd.nodes[0].max()
            faces.append(np.flatnonzero(np.abs(sd.face_centers[0] - xm) < tol))
        elif s == "south" or s == "ymin":
            xm = sd.nodes[1].min()
            faces.append(np.flatnonzero(np.abs(sd.face_centers[1] - xm) < tol))
        elif s == "north" or s == "ymax":
            xm = sd.nodes[1].max()
            faces.append(np.flatnonzero(np.abs(sd.face_centers[1] - xm) < tol))
        else:
            raise ValueError("Unknown face side")
    return faces
