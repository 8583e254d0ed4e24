"""Database schema root — declarative Base and constraint naming convention."""
