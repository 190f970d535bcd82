"""
GUI module for EQ Editor.

Uses PySide6 and pyqtgraph for interactive editing.
Strict separation from editor logic - this module only contains presentation.
"""

from .main_window import MainWindow

__all__ = ["MainWindow"]
