"""
abcsim/vector.py - Vector and Math Utilities

Pure helpers over numpy arrays (2D or 3D). No state.
"""

import math
from typing import Optional

import numpy as np

from .constants import EPSILON


def norm(v: np.ndarray) -> float:
    """Euclidean length."""
    return float(np.linalg.norm(v))


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector along v, or the zero vector when |v| is near zero."""
    length = norm(v)
    if length < EPSILON:
        return np.zeros_like(v, dtype=float)
    return v / length


def clamp_norm(v: np.ndarray, limit: float) -> np.ndarray:
    """v rescaled so its length is at most limit."""
    length = norm(v)
    if length <= limit:
        return v
    return v * (limit / length)


def dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.dot(a, b))


def cross(a: np.ndarray, b: np.ndarray):
    """
    Cross product.

    2D inputs return the scalar z component, 3D inputs return a vector.
    """
    if len(a) == 2:
        return float(a[0] * b[1] - a[1] * b[0])
    return np.cross(a, b)


def distance(a: np.ndarray, b: np.ndarray) -> float:
    return norm(a - b)


def reflect(v: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """Mirror v about the plane with the given normal."""
    n = normalize(normal)
    return v - 2.0 * dot(v, n) * n


def refract(incident: np.ndarray, normal: np.ndarray, n1: float, n2: float) -> Optional[np.ndarray]:
    """
    Snell's law refraction of a unit direction.

    The normal may point either way; it is oriented against the incident
    direction before use.

    Args:
        incident: Direction of travel (need not be unit length)
        normal: Surface normal
        n1: Refractive index on the incident side
        n2: Refractive index on the far side

    Returns:
        Unit refracted direction, or None on total internal reflection
    """
    i = normalize(incident)
    n = normalize(normal)
    cos_i = -dot(n, i)
    if cos_i < 0.0:
        n = -n
        cos_i = -cos_i
    eta = n1 / max(n2, EPSILON)
    k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)
    if k < 0.0:
        return None
    return eta * i + (eta * cos_i - math.sqrt(k)) * n


def gaussian(rng: np.random.Generator, sigma: float = 1.0, size=None):
    """Zero-mean normal sample(s) from the engine's generator."""
    return rng.normal(0.0, sigma, size)


def pairwise_distances(points: np.ndarray) -> np.ndarray:
    """Dense (n, n) distance matrix for an (n, d) array of points."""
    if len(points) == 0:
        return np.zeros((0, 0))
    diff = points[:, None, :] - points[None, :, :]
    return np.sqrt(np.sum(diff * diff, axis=-1))
