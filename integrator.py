"""Fixed-step integrator that advances the double pendulum state.

One call to advance() applies exactly one explicit step of size dt over
the whole [theta1, theta2, omega1, omega2] vector. There is no substepping
and no step rejection; callers wanting finer resolution call advance()
more often with a smaller dt (see pendulum/stepper.py).
"""

from __future__ import annotations

import enum
import logging
import math

import numpy as np

from simulation import (
    MechanicalState,
    ParameterError,
    PhysicalParameters,
    derivatives,
    positions,
    total_energy,
)

logger = logging.getLogger(__name__)


class StepError(ValueError):
    """Raised when a step size is zero, negative, or non-finite."""


class Scheme(enum.Enum):
    """Explicit one-step schemes, cheapest first."""

    EULER = "euler"
    SEMI_IMPLICIT = "semi-implicit"
    RK4 = "rk4"

    @classmethod
    def parse(cls, name: str) -> Scheme:
        try:
            return cls(name.strip().lower())
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise ValueError(
                f"Unknown integration scheme {name!r} (choose from {choices})"
            ) from None


def _euler_step(y: np.ndarray, params, dt: float) -> np.ndarray:
    return y + dt * derivatives(0.0, y, params)


def _semi_implicit_step(y: np.ndarray, params, dt: float) -> np.ndarray:
    # Velocities first, then angles from the updated velocities
    d = derivatives(0.0, y, params)
    omega_next = y[2:] + dt * d[2:]
    theta_next = y[:2] + dt * omega_next
    return np.concatenate([theta_next, omega_next])


def _rk4_step(y: np.ndarray, params, dt: float) -> np.ndarray:
    k1 = derivatives(0.0, y, params)
    k2 = derivatives(0.0, y + 0.5 * dt * k1, params)
    k3 = derivatives(0.0, y + 0.5 * dt * k2, params)
    k4 = derivatives(0.0, y + dt * k3, params)
    return y + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


_STEPPERS = {
    Scheme.EULER: _euler_step,
    Scheme.SEMI_IMPLICIT: _semi_implicit_step,
    Scheme.RK4: _rk4_step,
}


def _check_dt(dt) -> float:
    try:
        dt = float(dt)
    except (TypeError, ValueError):
        raise StepError(f"dt must be a number, got {dt!r}") from None
    if not math.isfinite(dt) or dt <= 0.0:
        raise StepError(f"dt must be positive and finite, got {dt!r}")
    return dt


def _check_params(params) -> PhysicalParameters:
    # Only PhysicalParameters has been through construction-time validation
    if not isinstance(params, PhysicalParameters):
        raise ParameterError(
            f"params must be PhysicalParameters, got {type(params).__name__}"
        )
    return params


def advance(
    state: MechanicalState,
    params: PhysicalParameters,
    dt: float,
    scheme: Scheme = Scheme.RK4,
) -> MechanicalState:
    """Return the state one step of size dt later.

    The input state is left untouched. Non-finite results are returned
    as-is rather than raised.
    """
    params = _check_params(params)
    dt = _check_dt(dt)
    y_next = _STEPPERS[Scheme(scheme)](state.as_array(), params, dt)
    return MechanicalState.from_array(y_next)


class Integrator:
    """Owns the mechanical state of one pendulum and advances it in place.

    The state handed in at construction is copied, so the caller's object
    is never mutated. Readers get snapshots through snapshot() or the
    scalar accessors; the live state object is not exposed.
    """

    def __init__(
        self,
        params: PhysicalParameters,
        state: MechanicalState,
        scheme: Scheme = Scheme.RK4,
    ):
        self._params = _check_params(params)
        state.validate()
        self._state = state.copy()
        self._scheme = Scheme(scheme)
        self._steps = 0
        self._elapsed = 0.0
        self._warned_non_finite = False
        logger.info(
            "Integrator ready: scheme=%s m1=%.3g m2=%.3g l1=%.3g l2=%.3g g=%.3g",
            self._scheme.value, params.m1, params.m2, params.l1, params.l2,
            params.g,
        )

    # -- Stepping --

    def advance(self, dt: float) -> MechanicalState:
        """Apply exactly one step of size dt and return a snapshot."""
        nxt = advance(self._state, self._params, dt, self._scheme)
        s = self._state
        s.theta1, s.theta2 = nxt.theta1, nxt.theta2
        s.omega1, s.omega2 = nxt.omega1, nxt.omega2
        self._steps += 1
        self._elapsed += float(dt)

        if not self._warned_non_finite and not s.is_finite():
            self._warned_non_finite = True
            logger.warning(
                "State became non-finite after %d steps (t=%.4f s): %s",
                self._steps, self._elapsed, s,
            )
        return s.copy()

    # -- Read accessors --

    @property
    def params(self) -> PhysicalParameters:
        return self._params

    @property
    def scheme(self) -> Scheme:
        return self._scheme

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def elapsed(self) -> float:
        """Simulated time in seconds (sum of all dt)."""
        return self._elapsed

    @property
    def theta1(self) -> float:
        return self._state.theta1

    @property
    def theta2(self) -> float:
        return self._state.theta2

    @property
    def omega1(self) -> float:
        return self._state.omega1

    @property
    def omega2(self) -> float:
        return self._state.omega2

    def is_finite(self) -> bool:
        return self._state.is_finite()

    def snapshot(self) -> MechanicalState:
        return self._state.copy()

    def positions(self):
        """Cartesian (x1, y1, x2, y2) of both bobs for the current state."""
        return positions(self._state, self._params)

    def energy(self) -> float:
        return float(total_energy(self._state, self._params))
