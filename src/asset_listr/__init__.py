"""Real-estate listing manager for a single agency."""

__version__ = "0.1.0"
