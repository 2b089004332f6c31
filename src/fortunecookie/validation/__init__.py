"""Cleaning and validation of raw model output."""

from fortunecookie.validation.candidate import Invalid, decode_candidate, validate
from fortunecookie.validation.cleaner import clean

__all__ = ["Invalid", "clean", "decode_candidate", "validate"]
