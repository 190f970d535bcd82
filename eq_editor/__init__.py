"""
EQ Editor - interactive parametric equalizer curve editor.
"""

__version__ = "1.0.0"
