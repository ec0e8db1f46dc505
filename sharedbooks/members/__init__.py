"""
SharedBooks Members - Public API
================================
"""

from sharedbooks.members.models import Membership
from sharedbooks.members.provider import InMemoryMembershipProvider, MembershipProvider
from sharedbooks.members.service import MembershipService

__all__ = [
    "InMemoryMembershipProvider",
    "Membership",
    "MembershipProvider",
    "MembershipService",
]
