"""
API routes package.
"""

from app.api import (
    clients,
    quotes,
    costing,
)

__all__ = [
    "clients",
    "quotes",
    "costing",
]
