"""Pydantic Schemas — request/response shapes for API endpoints.

Invariants:
    - Wire format is camelCase; Python attributes are snake_case
    - Services return these models directly; routes serialize them by alias
"""
