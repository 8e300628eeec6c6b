"""Image upload, resize and derivation cache service."""

__version__ = "1.0.0"
