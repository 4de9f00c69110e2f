"""Finite volume discretization: MPFA-O interaction volumes and local flux
stencils, the global pressure model, upwind mobilities and the velocity
reconstruction."""
