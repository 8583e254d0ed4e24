"""Parley Application Package — conversation coordination backend.

Invariants:
    - Package root holds only metadata (no import side-effects)
"""

__version__ = "1.0.0"
