"""MechFlow: deterministic shop-floor scheduling with outsourcing fallback."""

__version__ = "0.1.0"
