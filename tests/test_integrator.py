"""Tests for integrator.py: determinism, drift, reductions, golden values.

Energy tolerances asserted here:
- RK4 and semi-implicit Euler stay under 1% of |E0| over 10,000 steps
  at dt = 1/240.
- Forward Euler is expected to drift by far more than that; the test
  only pins that it does.
"""

import logging
import math
from types import SimpleNamespace

import numpy as np
import pytest

from integrator import Integrator, Scheme, StepError, advance
from simulation import (
    MechanicalState, ParameterError, PhysicalParameters, StateError,
    derive, simulate, total_energy,
)

ALL_SCHEMES = list(Scheme)


def _max_energy_drift(scheme, n_steps=10_000, dt=1.0 / 240.0):
    params = PhysicalParameters()
    state = MechanicalState(0.5, 0.8, 0.0, 0.0)
    e0 = total_energy(state, params)
    drift = 0.0
    for _ in range(n_steps):
        state = advance(state, params, dt, scheme)
        drift = max(drift, abs(total_energy(state, params) - e0))
    return drift / abs(e0)


class TestAdvance:
    """The pure single-step function."""

    def test_golden_rk4_step(self):
        """One RK4 step from the default chaotic start, frozen values."""
        params = PhysicalParameters(m1=1, m2=1, l1=1, l2=1, g=9.81)
        state = MechanicalState(0.0, 2.0, 0.0, 0.0)
        nxt = advance(state, params, 1.0 / 60.0, Scheme.RK4)
        assert nxt.theta1 == pytest.approx(-0.00028175127334525957, rel=1e-10)
        assert nxt.theta2 == pytest.approx(1.9986437259572165, rel=1e-12)
        assert nxt.omega1 == pytest.approx(-0.033753510855573501, rel=1e-10)
        assert nxt.omega2 == pytest.approx(-0.16274208849876615, rel=1e-10)

    def test_euler_step_is_one_derivative_evaluation(self):
        params = PhysicalParameters()
        state = MechanicalState(0.3, -0.4, 0.2, 0.1)
        dt = 0.01
        alpha1, alpha2 = derive(state, params)
        nxt = advance(state, params, dt, Scheme.EULER)
        assert nxt.theta1 == pytest.approx(0.3 + dt * 0.2)
        assert nxt.theta2 == pytest.approx(-0.4 + dt * 0.1)
        assert nxt.omega1 == pytest.approx(0.2 + dt * alpha1)
        assert nxt.omega2 == pytest.approx(0.1 + dt * alpha2)

    def test_semi_implicit_uses_updated_velocity(self):
        params = PhysicalParameters()
        state = MechanicalState(0.3, -0.4, 0.2, 0.1)
        dt = 0.01
        alpha1, alpha2 = derive(state, params)
        nxt = advance(state, params, dt, Scheme.SEMI_IMPLICIT)
        assert nxt.omega1 == pytest.approx(0.2 + dt * alpha1)
        assert nxt.theta1 == pytest.approx(0.3 + dt * nxt.omega1)
        assert nxt.theta2 == pytest.approx(-0.4 + dt * nxt.omega2)

    def test_input_not_mutated(self):
        state = MechanicalState(0.0, 2.0, 0.0, 0.0)
        advance(state, PhysicalParameters(), 0.01)
        assert state == MechanicalState(0.0, 2.0, 0.0, 0.0)

    @pytest.mark.parametrize("scheme", ALL_SCHEMES)
    def test_deterministic(self, scheme):
        """Identical inputs give bit-identical outputs."""
        params = PhysicalParameters(m1=1.2, m2=0.7, l1=0.9, l2=1.4)
        state = MechanicalState(1.1, -2.3, 0.4, 3.0)
        first = advance(state, params, 1.0 / 60.0, scheme)
        for _ in range(5):
            assert advance(state, params, 1.0 / 60.0, scheme) == first

    @pytest.mark.parametrize("dt", [0.0, -0.01, math.nan, math.inf, "x"])
    def test_rejects_invalid_dt(self, dt):
        with pytest.raises(StepError):
            advance(MechanicalState(), PhysicalParameters(), dt)

    def test_rejects_unvalidated_params(self):
        """Lookalike parameter objects skip validation, so they are refused."""
        params = SimpleNamespace(m1=-1.0, m2=1.0, l1=1.0, l2=1.0, g=9.81)
        with pytest.raises(ParameterError):
            advance(MechanicalState(0.0, 2.0, 0.0, 0.0), params, 0.01)

    @pytest.mark.parametrize("name, scheme", [
        ("rk4", Scheme.RK4),
        ("euler", Scheme.EULER),
        ("semi-implicit", Scheme.SEMI_IMPLICIT),
    ])
    def test_accepts_scheme_value_string(self, name, scheme):
        params = PhysicalParameters()
        state = MechanicalState(0.0, 2.0, 0.0, 0.0)
        assert advance(state, params, 0.01, name) == advance(
            state, params, 0.01, scheme,
        )

    def test_step_error_is_value_error(self):
        assert issubclass(StepError, ValueError)


class TestRestState:
    """Hanging straight down at rest is an exact equilibrium."""

    @pytest.mark.parametrize("scheme", ALL_SCHEMES)
    @pytest.mark.parametrize("dt", [1e-4, 1.0 / 60.0, 0.5, 10.0])
    def test_rest_state_unchanged(self, scheme, dt):
        params = PhysicalParameters()
        state = MechanicalState()
        for _ in range(100):
            state = advance(state, params, dt, scheme)
        assert state.theta1 == 0.0
        assert state.theta2 == 0.0
        assert state.omega1 == 0.0
        assert state.omega2 == 0.0


class TestEnergyDrift:
    """Energy drift over 10,000 steps at dt = 1/240 from moderate angles."""

    def test_rk4_drift_under_one_percent(self):
        assert _max_energy_drift(Scheme.RK4) < 0.01

    def test_rk4_drift_is_tiny(self):
        assert _max_energy_drift(Scheme.RK4) < 1e-6

    def test_semi_implicit_drift_under_one_percent(self):
        assert _max_energy_drift(Scheme.SEMI_IMPLICIT) < 0.01

    def test_forward_euler_drifts_more(self):
        """Forward Euler pumps energy in; documented, not a bug."""
        euler = _max_energy_drift(Scheme.EULER)
        assert euler > 0.1
        assert euler > _max_energy_drift(Scheme.SEMI_IMPLICIT)


class TestSimplePendulumReduction:
    """With m2 negligible, link 1 behaves as a simple pendulum."""

    def test_small_angle_acceleration(self):
        params = PhysicalParameters(m1=1.0, m2=1e-9, l1=1.0, l2=1.0, g=9.81)
        theta = 0.05
        alpha1, _ = derive(MechanicalState(theta, theta, 0.0, 0.0), params)
        assert alpha1 == pytest.approx(-(params.g / params.l1) * theta, rel=1e-3)

    def test_small_angle_trajectory(self):
        params = PhysicalParameters(m1=1.0, m2=1e-9, l1=1.0, l2=1.0, g=9.81)
        theta0 = 0.01
        dt = 1.0 / 240.0
        omega = math.sqrt(params.g / params.l1)
        state = MechanicalState(theta0, theta0, 0.0, 0.0)
        for i in range(1, 481):
            state = advance(state, params, dt, Scheme.RK4)
            expected = theta0 * math.cos(omega * i * dt)
            assert state.theta1 == pytest.approx(expected, abs=1e-5)


class TestTimeSymmetry:
    """RK4 forward step, velocity flip, forward step returns near start."""

    @pytest.mark.parametrize("start, dt", [
        ((0.3, -0.4, 0.2, 0.1), 0.01),
        ((0.0, 2.0, 0.0, 0.0), 1.0 / 60.0),
    ])
    def test_step_reversal(self, start, dt):
        params = PhysicalParameters()
        state = advance(MechanicalState(*start), params, dt, Scheme.RK4)
        # Reversing velocities runs the autonomous system backwards in time
        state.omega1, state.omega2 = -state.omega1, -state.omega2
        state = advance(state, params, dt, Scheme.RK4)
        back = [state.theta1, state.theta2, -state.omega1, -state.omega2]
        # Local truncation error scale: C * dt^5 with a generous C
        np.testing.assert_allclose(back, start, atol=1e4 * dt**5)


class TestAgainstReference:
    """Fixed-step RK4 should track the DOP853 reference trajectory."""

    def test_rk4_tracks_dop853(self):
        params = PhysicalParameters()
        dt = 1.0 / 240.0
        t_ref, ref = simulate(params, 0.5, 0.8, t_end=2.0, dt=dt)
        state = MechanicalState(0.5, 0.8, 0.0, 0.0)
        for i in range(1, len(t_ref)):
            state = advance(state, params, dt, Scheme.RK4)
            np.testing.assert_allclose(
                state.as_array(), ref[i], atol=1e-6,
            )


class TestScheme:
    """Scheme name parsing used by the CLI."""

    @pytest.mark.parametrize("name, scheme", [
        ("rk4", Scheme.RK4),
        ("RK4", Scheme.RK4),
        (" euler ", Scheme.EULER),
        ("semi-implicit", Scheme.SEMI_IMPLICIT),
    ])
    def test_parse(self, name, scheme):
        assert Scheme.parse(name) is scheme

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="rk4"):
            Scheme.parse("verlet")


class TestIntegrator:
    """The stateful owner of the mechanical state."""

    def test_rejects_invalid_state(self):
        with pytest.raises(StateError):
            Integrator(PhysicalParameters(), MechanicalState(math.nan, 0, 0, 0))

    def test_rejects_non_params(self):
        with pytest.raises(ParameterError):
            Integrator({"m1": 1.0}, MechanicalState())

    def test_does_not_alias_caller_state(self):
        initial = MechanicalState(0.0, 2.0, 0.0, 0.0)
        integ = Integrator(PhysicalParameters(), initial)
        integ.advance(0.01)
        assert initial == MechanicalState(0.0, 2.0, 0.0, 0.0)

    def test_advance_matches_pure_function(self):
        params = PhysicalParameters()
        initial = MechanicalState(0.0, 2.0, 0.0, 0.0)
        integ = Integrator(params, initial, Scheme.RK4)
        expected = advance(initial, params, 1.0 / 60.0, Scheme.RK4)
        assert integ.advance(1.0 / 60.0) == expected
        assert integ.snapshot() == expected
        assert integ.theta1 == expected.theta1
        assert integ.theta2 == expected.theta2

    def test_counts_steps_and_time(self):
        integ = Integrator(PhysicalParameters(), MechanicalState(0.1, 0.1, 0, 0))
        for _ in range(4):
            integ.advance(0.25)
        assert integ.steps == 4
        assert integ.elapsed == 1.0

    def test_snapshot_is_a_copy(self):
        integ = Integrator(PhysicalParameters(), MechanicalState(0.0, 2.0, 0, 0))
        snap = integ.advance(0.01)
        snap.theta1 = 100.0
        assert integ.theta1 != 100.0
        assert integ.snapshot().theta1 != 100.0

    def test_invalid_dt_leaves_state_alone(self):
        integ = Integrator(PhysicalParameters(), MechanicalState(0.0, 2.0, 0, 0))
        with pytest.raises(StepError):
            integ.advance(-0.01)
        assert integ.steps == 0
        assert integ.snapshot() == MechanicalState(0.0, 2.0, 0.0, 0.0)

    def test_angles_are_not_wrapped(self):
        """A whirling arm accumulates rotation past 2*pi."""
        integ = Integrator(
            PhysicalParameters(), MechanicalState(0.0, 0.0, 20.0, 20.0),
        )
        for _ in range(240):
            integ.advance(1.0 / 240.0)
        assert abs(integ.theta1) > 2 * math.pi

    def test_positions_and_energy(self):
        params = PhysicalParameters(l1=1.0, l2=0.5)
        integ = Integrator(params, MechanicalState())
        x1, y1, x2, y2 = integ.positions()
        assert (x1, y1) == pytest.approx((0.0, -1.0))
        assert (x2, y2) == pytest.approx((0.0, -1.5))
        assert integ.energy() == pytest.approx(
            total_energy(MechanicalState(), params),
        )

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_non_finite_state_propagates_and_warns_once(self, caplog):
        integ = Integrator(
            PhysicalParameters(), MechanicalState(0.0, 0.0, 1e200, 1e200),
        )
        with caplog.at_level(logging.WARNING, logger="integrator"):
            integ.advance(0.01)
            integ.advance(0.01)
        assert not integ.is_finite()
        assert integ.steps == 2
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "non-finite" in warnings[0].getMessage()
