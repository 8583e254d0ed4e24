"""Infrastructure Layer — database sessions, token verification, logging.

Invariants:
    - Infrastructure never imports from services/
"""
