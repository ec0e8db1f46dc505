"""
SharedBooks Business - Public API
=================================
"""

from sharedbooks.business.models import Business, BusinessState
from sharedbooks.business.provider import BusinessProvider, InMemoryBusinessProvider

__all__ = [
    "Business",
    "BusinessState",
    "BusinessProvider",
    "InMemoryBusinessProvider",
]
