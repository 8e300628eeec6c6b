"""Image transform exports."""

from .engine import TransformEngine

__all__ = ["TransformEngine"]
