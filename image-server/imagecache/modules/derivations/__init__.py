"""Derivation cache exports."""

from .cache import DerivationCache, parse_width
from .models import DerivedImage

__all__ = [
    "DerivationCache",
    "DerivedImage",
    "parse_width",
]
