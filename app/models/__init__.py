"""
SQLAlchemy models for EduQuote.
"""

from app.models.base import Base, EntityBase, TimestampMixin
from app.models.client import Client
from app.models.quote import Quote, QuoteNumberSequence

__all__ = [
    "Base",
    "EntityBase",
    "TimestampMixin",
    "Client",
    "Quote",
    "QuoteNumberSequence",
]
