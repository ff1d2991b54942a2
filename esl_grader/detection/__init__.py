"""Local error detection over raw essay text."""

from .offsets import is_covered, Utf16Index
from .detectors import (
    Detector,
    DEFAULT_PASSES,
    apply_pass,
    run_detectors,
    expand_measurement,
    detect_lowercase_i,
    detect_day_names,
    detect_intro_commas,
    detect_prepositions,
    detect_measurements,
    detect_word_order,
    detect_misspellings,
    detect_modal_misuse,
)

__all__ = [
    "is_covered",
    "Utf16Index",
    "Detector",
    "DEFAULT_PASSES",
    "apply_pass",
    "run_detectors",
    "expand_measurement",
    "detect_lowercase_i",
    "detect_day_names",
    "detect_intro_commas",
    "detect_prepositions",
    "detect_measurements",
    "detect_word_order",
    "detect_misspellings",
    "detect_modal_misuse",
]
