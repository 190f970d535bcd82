"""
Formatting functions for display.

Converts band values into readable strings.
"""

from typing import Optional

from ..core.entities import q_to_bandwidth


def format_frequency(hz: float) -> str:
    """
    Format frequency.

    Args:
        hz: Frequency in Hz

    Returns:
        Formatted string (e.g. "1.5 kHz" or "250 Hz")
    """
    if hz >= 1000:
        return f"{hz/1000:.1f} kHz"
    else:
        return f"{hz:.0f} Hz"


def format_db(db: float, precision: int = 1, signed: bool = True) -> str:
    """
    Format a gain value.

    Args:
        db: Level in dB
        precision: Decimal places
        signed: Always show the sign

    Returns:
        Formatted string (e.g. "+3.0 dB", "-12.3 dB")
    """
    if db == float('-inf'):
        return "-∞ dB"
    if signed:
        return f"{db:+.{precision}f} dB"
    return f"{db:.{precision}f} dB"


def format_q(q: float) -> str:
    """Format Q (e.g. "Q 1.41")."""
    return f"Q {q:.2f}"


def format_bandwidth(q: float) -> str:
    """
    Format the bandwidth in octaves that corresponds to a Q value.

    Args:
        q: Quality factor, must be > 0

    Returns:
        Formatted string (e.g. "1.39 oct")
    """
    if q <= 0:
        raise ValueError("Q must be positive")
    return f"{q_to_bandwidth(q):.2f} oct"


def format_band(frequency: float, gain: float, q: Optional[float] = None) -> str:
    """
    One-line summary of a band or point.

    Returns:
        Formatted string (e.g. "1.0 kHz  +6.0 dB  Q 1.00")
    """
    parts = [format_frequency(frequency), format_db(gain)]
    if q is not None:
        parts.append(format_q(q))
    return "  ".join(parts)
