"""
abcsim/dynamics_field.py - Field Deformation Grid

Gravity-well visualization: one scalar per grid cell, decreasing with
distance from the center and clamped to [0, 1].
"""

import numpy as np

from .constants import DEFORMATION_OFFSET, DEFORMATION_SCALE, GRID_EXTENT, GRID_RESOLUTION


def compute_deformation(central_mass: float, resolution: int = GRID_RESOLUTION) -> np.ndarray:
    """
    Deformation grid for a central mass.

    Args:
        central_mass: Mass at the origin (negative masses give a flat grid)
        resolution: Cells per side minus one

    Returns:
        (resolution + 1, resolution + 1) array in [0, 1]
    """
    axis = np.linspace(-GRID_EXTENT, GRID_EXTENT, resolution + 1)
    xx, yy = np.meshgrid(axis, axis)
    r = np.sqrt(xx * xx + yy * yy)
    deform = central_mass * DEFORMATION_SCALE / (r + DEFORMATION_OFFSET)
    return np.clip(deform, 0.0, 1.0)


def update_field(world) -> None:
    """Recompute the world's deformation grid in place."""
    world.deformation = compute_deformation(world.parameters.central_mass)
