#!/usr/bin/env python3
"""
EQ Editor - entry point

Interactive parametric equalizer curve editor.

Usage:
    python main.py [-v]
"""

import logging
import sys


def main():
    """Start the EQ Editor application."""
    # Check Python version
    if sys.version_info < (3, 10):
        print("Error: Python 3.10 or higher is required.")
        print(f"Current version: {sys.version}")
        sys.exit(1)

    level = logging.DEBUG if "-v" in sys.argv[1:] else logging.INFO
    logging.basicConfig(level=level, format='%(asctime)s - %(levelname)s - %(message)s')

    # Import PySide6 (late import for faster error if not installed)
    try:
        from PySide6.QtWidgets import QApplication
        from PySide6.QtCore import Qt
    except ImportError:
        print("Error: PySide6 is not installed.")
        print("Install with: pip install PySide6")
        sys.exit(1)

    # Import our application
    from eq_editor.gui import MainWindow

    # Enable High DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    # Create application
    app = QApplication(sys.argv)
    app.setApplicationName("EQ Editor")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("EQEditor")

    window = MainWindow()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
