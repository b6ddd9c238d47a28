"""
abcsim/dynamics_relativity.py - Relativistic Clock Bookkeeping

Earth clock runs at the base rate, rocket clock at base / gamma.
"""

import math

from .constants import CLOCK_STATES, CLOCK_TICK_PERIOD, MAX_VELOCITY_FRACTION
from .types_state import ClockState, Clocks


def clamp_velocity(v: float) -> float:
    """Velocity fraction clamped to [0, MAX_VELOCITY_FRACTION]."""
    if not math.isfinite(v):
        return 0.0
    return min(abs(v), MAX_VELOCITY_FRACTION)


def lorentz_factor(v: float) -> float:
    """
    gamma = 1 / sqrt(1 - v^2).

    Args:
        v: Velocity as a fraction of the reference speed

    Returns:
        Lorentz factor (>= 1)
    """
    v = clamp_velocity(v)
    return 1.0 / math.sqrt(1.0 - v * v)


def clock_label(ticks: int) -> str:
    """Discrete 3-state label from a tick count."""
    return CLOCK_STATES[ticks % len(CLOCK_STATES)]


def _advance(clock: ClockState, dt: float) -> None:
    clock.elapsed += dt
    clock.ticks = int(clock.elapsed // CLOCK_TICK_PERIOD)
    clock.state = clock_label(clock.ticks)


def advance_clocks(clocks: Clocks, velocity: float, dt: float) -> float:
    """
    Advance both clocks by one tick.

    Returns:
        The Lorentz factor used
    """
    gamma = lorentz_factor(velocity)
    clocks.gamma = gamma
    _advance(clocks.earth, dt)
    _advance(clocks.rocket, dt / gamma)
    return gamma
