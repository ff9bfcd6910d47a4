"""Double pendulum mechanical model.

Holds the physical parameters, the mechanical state, and the closed-form
Lagrangian equations of motion for a frictionless planar double pendulum
with point masses on massless rigid arms.

Both angles are measured from straight down: theta1 at the pivot, theta2
at the end of arm 1. Angles are never wrapped, so a state keeps the full
rotation count of each arm.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace

import numpy as np
from scipy.integrate import solve_ivp


class ParameterError(ValueError):
    """Raised when physical parameters are non-positive or non-finite."""


class StateError(ValueError):
    """Raised when a mechanical state has non-finite components."""


@dataclass(frozen=True)
class PhysicalParameters:
    """Physical parameters of the double pendulum system."""

    m1: float = 1.0
    m2: float = 1.0
    l1: float = 1.0
    l2: float = 1.0
    g: float = 9.81

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ParameterError(
                    f"{f.name} must be a number, got {value!r}"
                ) from None
            if not math.isfinite(value) or value <= 0.0:
                raise ParameterError(
                    f"{f.name} must be positive and finite, got {value!r}"
                )
            object.__setattr__(self, f.name, value)


@dataclass
class MechanicalState:
    """Angles (rad) and angular velocities (rad/s) of both arms."""

    theta1: float = 0.0
    theta2: float = 0.0
    omega1: float = 0.0
    omega2: float = 0.0

    @classmethod
    def from_array(cls, y) -> MechanicalState:
        """Build a state from a 4-vector [theta1, theta2, omega1, omega2]."""
        theta1, theta2, omega1, omega2 = (float(v) for v in y)
        return cls(theta1, theta2, omega1, omega2)

    def as_array(self) -> np.ndarray:
        return np.array(
            [self.theta1, self.theta2, self.omega1, self.omega2],
            dtype=np.float64,
        )

    def copy(self) -> MechanicalState:
        return replace(self)

    def is_finite(self) -> bool:
        return all(
            math.isfinite(v)
            for v in (self.theta1, self.theta2, self.omega1, self.omega2)
        )

    def validate(self):
        """Raise StateError if any component is NaN or infinite."""
        for f in fields(self):
            value = getattr(self, f.name)
            if not math.isfinite(value):
                raise StateError(f"{f.name} must be finite, got {value!r}")


def _unpack(state):
    # float64 so overflow gives inf/nan instead of OverflowError
    if isinstance(state, MechanicalState):
        values = (state.theta1, state.theta2, state.omega1, state.omega2)
    else:
        values = tuple(state)
    theta1, theta2, omega1, omega2 = (np.float64(v) for v in values)
    return theta1, theta2, omega1, omega2


def _accelerations(theta1, theta2, omega1, omega2, params):
    m1, m2, l1, l2, g = params.m1, params.m2, params.l1, params.l2, params.g

    delta = theta1 - theta2
    sin_delta = np.sin(delta)
    cos_delta = np.cos(delta)
    # Bounded below by 2*m1, so it cannot vanish for valid parameters
    den = 2.0 * m1 + m2 - m2 * np.cos(2.0 * delta)

    alpha1 = (
        -g * (2.0 * m1 + m2) * np.sin(theta1)
        - m2 * g * np.sin(theta1 - 2.0 * theta2)
        - 2.0 * sin_delta * m2 * (
            omega2**2 * l2 + omega1**2 * l1 * cos_delta
        )
    ) / (l1 * den)

    alpha2 = (
        2.0 * sin_delta * (
            omega1**2 * l1 * (m1 + m2)
            + g * (m1 + m2) * np.cos(theta1)
            + omega2**2 * l2 * m2 * cos_delta
        )
    ) / (l2 * den)

    return alpha1, alpha2


def derive(state, params):
    """Angular accelerations (ddot_theta1, ddot_theta2) for a single state.

    Pure function of the state and parameters. The state may be a
    MechanicalState or any sequence [theta1, theta2, omega1, omega2].
    """
    alpha1, alpha2 = _accelerations(*_unpack(state), params)
    return float(alpha1), float(alpha2)


def derivatives(t, state, params):
    """Compute the four first-order ODEs for the double pendulum.

    State vector: [theta1, theta2, omega1, omega2]
    Returns: [d_theta1/dt, d_theta2/dt, d_omega1/dt, d_omega2/dt]

    ``t`` is unused (the system is autonomous); it is accepted so this can
    be handed straight to solve_ivp.
    """
    theta1, theta2, omega1, omega2 = _unpack(state)
    alpha1, alpha2 = _accelerations(theta1, theta2, omega1, omega2, params)
    return np.array([omega1, omega2, alpha1, alpha2], dtype=np.float64)


def simulate(params, theta1_0, theta2_0, omega1_0=0.0, omega2_0=0.0,
             t_end=10.0, dt=0.005):
    """Reference trajectory from SciPy's DOP853 at tight tolerances.

    Used to cross-check the fixed-step integrator, not for animation.

    Returns:
        t_array: 1D array of time values at uniform dt spacing
        state_array: 2D array of shape (len(t_array), 4)
    """
    t_eval = np.arange(0, t_end, dt)
    y0 = [theta1_0, theta2_0, omega1_0, omega2_0]

    sol = solve_ivp(
        fun=lambda t, y: derivatives(t, y, params),
        t_span=(0, t_end),
        y0=y0,
        method="DOP853",
        t_eval=t_eval,
        rtol=1e-12,
        atol=1e-12,
    )

    return sol.t, sol.y.T


def positions(state, params):
    """Convert a single state to Cartesian coordinates.

    Returns (x1, y1, x2, y2) with the pivot at the origin and y pointing
    up, so hanging bobs have negative y.
    """
    theta1, theta2, _, _ = _unpack(state)
    l1, l2 = params.l1, params.l2

    x1 = l1 * np.sin(theta1)
    y1 = -l1 * np.cos(theta1)

    x2 = x1 + l2 * np.sin(theta2)
    y2 = y1 - l2 * np.cos(theta2)

    return x1, y1, x2, y2


def total_energy(state, params):
    """Compute total mechanical energy (T + V) for a single state.

    Potential energy is measured from the pivot point (y=0).
    """
    theta1, theta2, omega1, omega2 = _unpack(state)
    m1, m2, l1, l2, g = params.m1, params.m2, params.l1, params.l2, params.g

    # Kinetic energy
    T = (
        0.5 * (m1 + m2) * l1**2 * omega1**2
        + 0.5 * m2 * l2**2 * omega2**2
        + m2 * l1 * l2 * omega1 * omega2 * np.cos(theta1 - theta2)
    )

    # Potential energy (from pivot)
    V = -(m1 + m2) * g * l1 * np.cos(theta1) - m2 * g * l2 * np.cos(theta2)

    return T + V
