"""App window: hosts the pendulum view with a status bar and exit keys."""

import logging

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QMainWindow, QStatusBar

from pendulum.view import PendulumView

logger = logging.getLogger(__name__)


class AppWindow(QMainWindow):
    """Top-level window; Escape or Q closes it."""

    EXIT_KEYS = (Qt.Key.Key_Escape, Qt.Key.Key_Q)

    def __init__(self, config):
        super().__init__()
        self.setWindowTitle("Double Pendulum")
        self.resize(800, 800)

        self.pendulum_view = PendulumView(config)
        self.setCentralWidget(self.pendulum_view)

        # --- Status bar ---
        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)
        self._status_bar.addWidget(self.pendulum_view.time_label)
        self._status_bar.addWidget(self.pendulum_view.energy_label)
        self._status_bar.addWidget(self.pendulum_view.drift_label)

    def showEvent(self, event):
        super().showEvent(event)
        self.pendulum_view.start()

    def keyPressEvent(self, event):
        if event.key() in self.EXIT_KEYS:
            logger.info("Exit key pressed")
            self.close()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event):
        self.pendulum_view.stop()
        logger.info(
            "Stopped after %d steps (t=%.3f s)",
            self.pendulum_view.integrator.steps,
            self.pendulum_view.integrator.elapsed,
        )
        super().closeEvent(event)
