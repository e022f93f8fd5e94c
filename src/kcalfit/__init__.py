"""kcalfit: infer energy balance and body composition from a weight log."""

__version__ = "0.1.0"
