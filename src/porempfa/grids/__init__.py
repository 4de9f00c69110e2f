"""The subpackage ``grids`` contains the two-dimensional grid consumed by the
MPFA-O discretization.

The base class stores topology and geometry and provides the face handles
(intersections) and the anticlockwise "next face" operator used by all
interaction-volume computations. Structured (Cartesian and tensor) and general
quadrilateral constructors are provided.

"""
