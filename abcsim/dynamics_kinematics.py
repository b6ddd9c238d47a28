"""
abcsim/dynamics_kinematics.py - Node, Quark and Spaceship Kinematics

Force integration, refraction at the circular boundary, and wall bounces.
Everything scales with dt; no fixed tick length is assumed.
"""

import math

import numpy as np

from .constants import (
    ACTION_SOFTENING, DOMAIN_EXTENT, EPSILON, GRAVITY_SCALE, MAX_NODE_SPEED,
    MIN_FORCE_RADIUS, N_INSIDE, N_OUTSIDE, QUARK_ATTRACTION, QUARK_BOUNDARY,
    QUARK_CONFINEMENT_RADIUS, QUARK_FRICTION, QUARK_HARD_CORE,
    QUARK_REPULSION, QUARK_THERMAL_JITTER, REFRACTION_BOUNDARY,
    SPACESHIP_SPEED_SCALE, SPACESHIP_WRAP, VIBRATION_SCALE, WALL_DAMPING,
)
from .types_state import Node, Spaceship, WorldState
from .vector import clamp_norm, dot, gaussian, norm, normalize, reflect, refract

TWO_PI = 2.0 * math.pi


def bounce_walls(position: np.ndarray, velocity: np.ndarray, extent: float, damping: float) -> bool:
    """
    Reflect off the axis-aligned walls at +/- extent, in place.

    Returns:
        True if any axis bounced
    """
    bounced = False
    for axis in range(len(position)):
        if abs(position[axis]) > extent:
            position[axis] = math.copysign(extent, position[axis])
            velocity[axis] = -velocity[axis] * damping
            bounced = True
    return bounced


def refract_at_boundary(node: Node, previous: np.ndarray) -> None:
    """
    Apply Snell's law when a node crosses the refractive circle.

    Outward crossings go from N_INSIDE to N_OUTSIDE, inward the reverse.
    Total internal reflection mirrors the velocity and keeps the node on
    its previous side.
    """
    r_old = norm(previous)
    r_new = norm(node.position)
    outward = r_old < REFRACTION_BOUNDARY <= r_new
    inward = r_new < REFRACTION_BOUNDARY <= r_old
    if not (outward or inward):
        return

    normal = normalize(node.position if r_new > EPSILON else previous)
    n1, n2 = (N_INSIDE, N_OUTSIDE) if outward else (N_OUTSIDE, N_INSIDE)
    speed = norm(node.velocity)
    direction = refract(node.velocity, normal, n1, n2)
    if direction is None:
        node.velocity = reflect(node.velocity, normal)
        node.position = previous.copy()
    else:
        node.velocity = direction * speed


def advance_node(node: Node, central_mass: float, dt: float) -> None:
    """Vibration, action, central force, integration and boundaries for one node."""
    node.phase = (node.phase + node.frequency * dt * VIBRATION_SCALE) % TWO_PI

    r = norm(node.position)
    kinetic = 0.5 * dot(node.velocity, node.velocity)
    node.action += (kinetic - central_mass / (r + ACTION_SOFTENING)) * dt

    # Negative mass repels
    if r > MIN_FORCE_RADIUS:
        kick = central_mass * GRAVITY_SCALE / (r * r) * dt
        kick = max(-MAX_NODE_SPEED, min(MAX_NODE_SPEED, kick))
        node.velocity = node.velocity - (node.position / r) * kick
    node.velocity = clamp_norm(node.velocity, MAX_NODE_SPEED)

    previous = node.position.copy()
    node.position = node.position + node.velocity * dt
    refract_at_boundary(node, previous)
    bounce_walls(node.position, node.velocity, DOMAIN_EXTENT, WALL_DAMPING)


def advance_nodes(world: WorldState, dt: float) -> int:
    """
    Advance every non-collapsed node.

    Returns:
        Number of nodes moved
    """
    mass = world.parameters.central_mass
    moved = 0
    for node in world.nodes:
        if node.collapsed:
            continue
        advance_node(node, mass, dt)
        moved += 1
    return moved


def advance_quarks(world: WorldState, dt: float, rng: np.random.Generator) -> None:
    """
    Confinement attraction, hard-core repulsion, thermal jitter, friction.

    Forces use the positions at the start of the pass so the update does
    not depend on quark order.
    """
    quarks = world.quarks
    if not quarks:
        return

    positions = np.array([q.position for q in quarks])
    sigma = QUARK_THERMAL_JITTER * math.sqrt(dt)
    retain = max(0.0, 1.0 - QUARK_FRICTION * dt)

    for i, quark in enumerate(quarks):
        accel = np.zeros_like(quark.position)
        for j in range(len(quarks)):
            if j == i:
                continue
            delta = positions[j] - positions[i]
            d = norm(delta)
            if d < EPSILON:
                continue
            if d < QUARK_HARD_CORE:
                accel -= (delta / d) * QUARK_REPULSION
            elif d < QUARK_CONFINEMENT_RADIUS:
                accel += (delta / d) * QUARK_ATTRACTION
        jitter = gaussian(rng, sigma, size=len(quark.position))
        quark.velocity = (quark.velocity + accel * dt + jitter) * retain
        quark.position = quark.position + quark.velocity * dt
        bounce_walls(quark.position, quark.velocity, QUARK_BOUNDARY, WALL_DAMPING)


def advance_atoms(world: WorldState, dt: float) -> None:
    """Atoms drift with the same friction and boundary as quarks."""
    retain = max(0.0, 1.0 - QUARK_FRICTION * dt)
    for atom in world.atoms:
        atom.velocity = atom.velocity * retain
        atom.position = atom.position + atom.velocity * dt
        bounce_walls(atom.position, atom.velocity, QUARK_BOUNDARY, WALL_DAMPING)


def advance_spaceship(ship: Spaceship, velocity: float, dt: float) -> None:
    """Move the craft along x, wrapping at the far edge."""
    ship.x += velocity * SPACESHIP_SPEED_SCALE * dt
    if ship.x > SPACESHIP_WRAP:
        ship.x = -SPACESHIP_WRAP
