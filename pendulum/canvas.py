"""Pendulum canvas: QPainter rendering of the double pendulum and trail."""

from collections import deque

from PyQt6.QtCore import Qt, QPointF
from PyQt6.QtGui import QPainter, QPen, QBrush, QColor
from PyQt6.QtWidgets import QWidget

from simulation import MechanicalState, PhysicalParameters, positions


class PendulumCanvas(QWidget):
    """Custom widget that draws the double pendulum using QPainter.

    Only ever holds snapshot copies of the state; the trail keeps bob 2
    positions in physical units so it survives window resizes.
    """

    TRAIL_LENGTH = 500

    def __init__(self, params=None, trail_length=TRAIL_LENGTH, parent=None):
        super().__init__(parent)
        self.params = params if params is not None else PhysicalParameters()
        self.state = MechanicalState()
        self.trail = deque(maxlen=trail_length)
        self.setMinimumSize(400, 400)

    def set_state(self, state):
        """Show a new state snapshot and extend the bob 2 trail."""
        self.state = state
        _, _, x2, y2 = positions(state, self.params)
        self.trail.append((x2, y2))
        self.update()

    def _scale(self):
        w, h = self.width(), self.height()
        total_length = self.params.l1 + self.params.l2
        return min(w, h) * 0.45 / max(total_length, 0.01)

    def _to_pixel(self, x, y):
        """Convert physics coords (y up) to pixel coords (y down)."""
        scale = self._scale()
        cx = self.width() / 2
        cy = self.height() / 2
        return cx + x * scale, cy - y * scale

    def _draw_trail(self, painter):
        if len(self.trail) < 2:
            return
        trail_list = list(self.trail)
        for i in range(1, len(trail_list)):
            # Older segments fade out
            alpha = int(255 * i / len(trail_list))
            pen = QPen(QColor(95, 158, 160, alpha))
            pen.setWidthF(2.0)
            painter.setPen(pen)
            px0, py0 = self._to_pixel(*trail_list[i - 1])
            px1, py1 = self._to_pixel(*trail_list[i])
            painter.drawLine(QPointF(px0, py0), QPointF(px1, py1))

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        painter.fillRect(self.rect(), QColor(245, 245, 245))

        # Trail first so the arms draw over it
        self._draw_trail(painter)

        x1, y1, x2, y2 = positions(self.state, self.params)
        pivot_px = self._to_pixel(0, 0)
        bob1_px = self._to_pixel(x1, y1)
        bob2_px = self._to_pixel(x2, y2)

        # Arms
        arm_pen = QPen(QColor(128, 128, 128))
        arm_pen.setWidthF(4.0)
        painter.setPen(arm_pen)
        painter.drawLine(QPointF(*pivot_px), QPointF(*bob1_px))
        painter.drawLine(QPointF(*bob1_px), QPointF(*bob2_px))

        # Pivot and bobs
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(QColor(128, 128, 128)))
        painter.drawEllipse(QPointF(*pivot_px), 7, 7)

        bob_radius_1 = 5 + 2 * self.params.m1 ** 0.5
        bob_radius_2 = 5 + 2 * self.params.m2 ** 0.5
        painter.drawEllipse(QPointF(*bob1_px), bob_radius_1, bob_radius_1)
        painter.drawEllipse(QPointF(*bob2_px), bob_radius_2, bob_radius_2)

        painter.end()
