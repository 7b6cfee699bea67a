"""
API routes package.

All route modules are imported here for easy access.
"""

from projectbank.api.routes import health, projects

__all__ = ["health", "projects"]
