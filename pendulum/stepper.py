"""Frame stepper: turns wall-clock frame time into integrator steps.

Kept free of Qt so the timing policy can be tested headlessly. The view
calls tick() once per timer frame with the measured elapsed seconds.
"""

from __future__ import annotations

import enum
import logging
import math

from integrator import Integrator, StepError

logger = logging.getLogger(__name__)


class StepMode(enum.Enum):
    """How frame time maps onto advance() calls."""

    FRAME = "frame"  # one step per frame, dt = frame duration
    FIXED = "fixed"  # whole fixed-size steps, remainder carried over

    @classmethod
    def parse(cls, name: str) -> StepMode:
        try:
            return cls(name.strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Unknown step mode {name!r} (choose from {choices})"
            ) from None


class FrameStepper:
    """Drives an Integrator from the render loop's frame timing."""

    def __init__(
        self,
        integrator: Integrator,
        mode: StepMode = StepMode.FIXED,
        fixed_dt: float = 1.0 / 240.0,
        time_scale: float = 1.0,
        max_steps_per_frame: int = 64,
    ):
        if not math.isfinite(fixed_dt) or fixed_dt <= 0:
            raise StepError(
                f"fixed_dt must be positive and finite, got {fixed_dt!r}"
            )
        if not math.isfinite(time_scale) or time_scale <= 0:
            raise ValueError(
                f"time_scale must be positive and finite, got {time_scale!r}"
            )
        if max_steps_per_frame < 1:
            raise ValueError(
                f"max_steps_per_frame must be >= 1, got {max_steps_per_frame!r}"
            )
        self.integrator = integrator
        self.mode = StepMode(mode)
        self.fixed_dt = fixed_dt
        self.time_scale = time_scale
        self.max_steps_per_frame = max_steps_per_frame
        self._accumulator = 0.0

    @property
    def pending(self) -> float:
        """Simulated seconds accumulated but not yet stepped (fixed mode)."""
        return self._accumulator

    def tick(self, elapsed: float) -> int:
        """Advance for one frame of `elapsed` wall-clock seconds.

        Returns the number of advance() calls made.
        """
        if elapsed <= 0:
            return 0
        sim_time = elapsed * self.time_scale

        if self.mode is StepMode.FRAME:
            self.integrator.advance(sim_time)
            return 1

        self._accumulator += sim_time
        steps = 0
        while self._accumulator >= self.fixed_dt:
            if steps == self.max_steps_per_frame:
                logger.debug(
                    "Dropping %.4f s of simulated time after %d steps",
                    self._accumulator, steps,
                )
                # Keep the sub-step remainder so the phase stays continuous
                self._accumulator %= self.fixed_dt
                break
            self.integrator.advance(self.fixed_dt)
            self._accumulator -= self.fixed_dt
            steps += 1
        return steps
