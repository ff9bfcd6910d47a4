"""Startup configuration: physical parameters, initial state, and timing.

Everything is read once from the command line and frozen into a
SimulationConfig. Nothing is reloaded while the animation runs.
"""

from __future__ import annotations

import argparse
import math
from dataclasses import dataclass, field

from integrator import Scheme
from pendulum.stepper import StepMode
from simulation import MechanicalState, PhysicalParameters

# Fixed simulation tick (s); small enough that RK4 drift is invisible
DEFAULT_DT = 1.0 / 240.0
DEFAULT_FPS = 60
DEFAULT_TRAIL_LENGTH = 500


class ConfigError(ValueError):
    """Raised for invalid timing or display options."""


def _choice(parse):
    """Adapt a parse classmethod so argparse reports its message."""

    def convert(value):
        try:
            return parse(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from None

    convert.__name__ = parse.__name__
    return convert


def _default_state() -> MechanicalState:
    # Lower arm kicked up to 2 rad: chaotic from the first second
    return MechanicalState(theta1=0.0, theta2=2.0)


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable run configuration handed to the view at startup."""

    params: PhysicalParameters = field(default_factory=PhysicalParameters)
    initial_state: MechanicalState = field(default_factory=_default_state)
    scheme: Scheme = Scheme.RK4
    step_mode: StepMode = StepMode.FIXED
    dt: float = DEFAULT_DT
    time_scale: float = 1.0
    fps: int = DEFAULT_FPS
    trail_length: int = DEFAULT_TRAIL_LENGTH

    def __post_init__(self):
        self.initial_state.validate()
        if not math.isfinite(self.dt) or self.dt <= 0:
            raise ConfigError(f"dt must be positive and finite, got {self.dt!r}")
        if not math.isfinite(self.time_scale) or self.time_scale <= 0:
            raise ConfigError(
                f"time_scale must be positive and finite, got {self.time_scale!r}"
            )
        if self.fps <= 0:
            raise ConfigError(f"fps must be positive, got {self.fps!r}")
        if self.trail_length < 2:
            raise ConfigError(
                f"trail_length must be at least 2, got {self.trail_length!r}"
            )


def build_parser() -> argparse.ArgumentParser:
    defaults = PhysicalParameters()
    state = _default_state()
    parser = argparse.ArgumentParser(
        description="Animate a frictionless double pendulum.",
    )

    physics = parser.add_argument_group("physical parameters")
    physics.add_argument("--m1", type=float, default=defaults.m1,
                         help="Mass of bob 1 in kg (default: %(default)s)")
    physics.add_argument("--m2", type=float, default=defaults.m2,
                         help="Mass of bob 2 in kg (default: %(default)s)")
    physics.add_argument("--l1", type=float, default=defaults.l1,
                         help="Length of arm 1 in m (default: %(default)s)")
    physics.add_argument("--l2", type=float, default=defaults.l2,
                         help="Length of arm 2 in m (default: %(default)s)")
    physics.add_argument("--g", type=float, default=defaults.g,
                         help="Gravitational acceleration in m/s^2 "
                              "(default: %(default)s)")

    initial = parser.add_argument_group("initial state")
    initial.add_argument("--theta1", type=float, default=state.theta1,
                         help="Angle of arm 1 from vertical in rad "
                              "(default: %(default)s)")
    initial.add_argument("--theta2", type=float, default=state.theta2,
                         help="Angle of arm 2 from vertical in rad "
                              "(default: %(default)s)")
    initial.add_argument("--omega1", type=float, default=state.omega1,
                         help="Angular velocity of arm 1 in rad/s "
                              "(default: %(default)s)")
    initial.add_argument("--omega2", type=float, default=state.omega2,
                         help="Angular velocity of arm 2 in rad/s "
                              "(default: %(default)s)")

    timing = parser.add_argument_group("integration and display")
    timing.add_argument("--scheme", type=_choice(Scheme.parse),
                        default=Scheme.RK4,
                        metavar="{" + ",".join(s.value for s in Scheme) + "}",
                        help="Integration scheme (default: rk4)")
    timing.add_argument("--step-mode", type=_choice(StepMode.parse),
                        default=StepMode.FIXED,
                        metavar="{" + ",".join(m.value for m in StepMode) + "}",
                        help="'fixed' steps by --dt, 'frame' steps once per "
                             "frame by the frame duration (default: fixed)")
    timing.add_argument("--dt", type=float, default=DEFAULT_DT,
                        help="Fixed step size in s (default: 1/240)")
    timing.add_argument("--time-scale", type=float, default=1.0,
                        help="Simulated seconds per wall-clock second "
                             "(default: %(default)s)")
    timing.add_argument("--fps", type=int, default=DEFAULT_FPS,
                        help="Frame rate (default: %(default)s)")
    timing.add_argument("--trail-length", type=int,
                        default=DEFAULT_TRAIL_LENGTH,
                        help="Number of bob 2 positions kept in the trail "
                             "(default: %(default)s)")

    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def config_from_namespace(args: argparse.Namespace) -> SimulationConfig:
    """Build and validate a SimulationConfig from parsed arguments."""
    params = PhysicalParameters(
        m1=args.m1, m2=args.m2, l1=args.l1, l2=args.l2, g=args.g,
    )
    initial_state = MechanicalState(
        theta1=args.theta1, theta2=args.theta2,
        omega1=args.omega1, omega2=args.omega2,
    )
    return SimulationConfig(
        params=params,
        initial_state=initial_state,
        scheme=args.scheme,
        step_mode=args.step_mode,
        dt=args.dt,
        time_scale=args.time_scale,
        fps=args.fps,
        trail_length=args.trail_length,
    )


def config_from_args(argv=None) -> SimulationConfig:
    return config_from_namespace(build_parser().parse_args(argv))
