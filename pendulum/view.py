"""Pendulum view: wires the integrator, frame stepper, and canvas.

The QTimer is the render loop. Each timeout measures the real elapsed
time, lets the FrameStepper turn it into integrator steps, and hands the
canvas a snapshot of the resulting state.
"""

import logging

from PyQt6.QtCore import QElapsedTimer, QTimer
from PyQt6.QtWidgets import QLabel, QVBoxLayout, QWidget

from integrator import Integrator
from pendulum.canvas import PendulumCanvas
from pendulum.stepper import FrameStepper

logger = logging.getLogger(__name__)


class PendulumView(QWidget):
    """Live double pendulum animation driven by a SimulationConfig."""

    def __init__(self, config, parent=None):
        super().__init__(parent)
        self.config = config

        self.integrator = Integrator(
            config.params, config.initial_state, config.scheme,
        )
        self.stepper = FrameStepper(
            self.integrator,
            mode=config.step_mode,
            fixed_dt=config.dt,
            time_scale=config.time_scale,
        )
        self.initial_energy = self.integrator.energy()

        self.canvas = PendulumCanvas(config.params, config.trail_length)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.canvas)

        # Status bar labels (AppWindow places these in its status bar)
        self.time_label = QLabel()
        self.energy_label = QLabel()
        self.drift_label = QLabel()

        self._clock = QElapsedTimer()
        self.timer = QTimer()
        self.timer.setInterval(int(1000 / config.fps))
        self.timer.timeout.connect(self._on_timer)

        self.canvas.set_state(self.integrator.snapshot())
        self._update_labels()

    def start(self):
        self._clock.start()
        self.timer.start()

    def stop(self):
        self.timer.stop()

    def _on_timer(self):
        elapsed = self._clock.restart() / 1000.0
        self.stepper.tick(elapsed)

        if not self.integrator.is_finite():
            # Integrator already logged the warning; freeze on the last frame
            self.stop()
            self.time_label.setText("  state diverged  ")
            return

        logger.debug(
            "theta1=%.4f theta2=%.4f",
            self.integrator.theta1, self.integrator.theta2,
        )
        self.canvas.set_state(self.integrator.snapshot())
        self._update_labels()

    def _update_labels(self):
        energy = self.integrator.energy()
        drift = energy - self.initial_energy
        self.time_label.setText(f"  t = {self.integrator.elapsed:.3f} s  ")
        self.energy_label.setText(f"  E = {energy:.4f} J  ")
        self.drift_label.setText(f"  \u0394E = {drift:+.6f} J  ")
