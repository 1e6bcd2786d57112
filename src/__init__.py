"""Margati: neuro-profile calibration and microtask export sandbox."""

__version__ = "0.1.0"
