"""Entry point for the double pendulum animation.

Usage:
    python main.py [--theta1 0.0] [--theta2 2.0] [--scheme rk4] [-v]
"""

import logging
import sys

from config import build_parser, config_from_namespace


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = config_from_namespace(args)
    except ValueError as exc:
        parser.error(str(exc))

    # Qt only needed once the configuration is known to be valid
    from PyQt6.QtWidgets import QApplication

    from app_window import AppWindow

    app = QApplication(sys.argv[:1])
    window = AppWindow(config)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
