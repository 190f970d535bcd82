"""
Core editor module - fully testable without GUI dependencies.

This module contains all curve editing logic:
- Coordinate mapping between frequency/gain and pixels
- Frequency response synthesis (band combination, point interpolation)
- Entity store, selection and the interaction state machine
- Profile persistence and deferred execution helpers
"""

from .config import EditorConfig, EditorMode
from .coordinates import (
    FrequencyRange,
    AmplitudeRange,
    Viewport,
    freq_to_x,
    x_to_freq,
    gain_to_y,
    y_to_gain,
)
from .entities import Band, BandKind, BandSnapshot, REFERENCE_ID
from .biquad import BiquadResponseOracle, FilterResponseOracle
from .response import (
    FrequencyResponse,
    ResponseModel,
    combined_response,
    point_response,
    auto_gain_db,
)
from .amplitude_curve import AmplitudeCurveParams, CurveType, amplitude_at
from .interpolation import interpolate_log_linear
from .store import EntityStore
from .selection import SelectionModel, Rect, hit_test
from .timing import Clock, ManualClock, SystemClock, RateLimiter, Debouncer
from .profiles import (
    ProfileData,
    ProfileRepository,
    InMemoryProfileRepository,
    JsonProfileRepository,
)
from .engine import (
    InteractionEngine,
    InteractionState,
    PointerButton,
    Modifiers,
    CalibrationHint,
    RenderBundle,
)

__all__ = [
    "EditorConfig",
    "EditorMode",
    "FrequencyRange",
    "AmplitudeRange",
    "Viewport",
    "freq_to_x",
    "x_to_freq",
    "gain_to_y",
    "y_to_gain",
    "Band",
    "BandKind",
    "BandSnapshot",
    "REFERENCE_ID",
    "BiquadResponseOracle",
    "FilterResponseOracle",
    "FrequencyResponse",
    "ResponseModel",
    "combined_response",
    "point_response",
    "auto_gain_db",
    "AmplitudeCurveParams",
    "CurveType",
    "amplitude_at",
    "interpolate_log_linear",
    "EntityStore",
    "SelectionModel",
    "Rect",
    "hit_test",
    "Clock",
    "ManualClock",
    "SystemClock",
    "RateLimiter",
    "Debouncer",
    "ProfileData",
    "ProfileRepository",
    "InMemoryProfileRepository",
    "JsonProfileRepository",
    "InteractionEngine",
    "InteractionState",
    "PointerButton",
    "Modifiers",
    "CalibrationHint",
    "RenderBundle",
]
