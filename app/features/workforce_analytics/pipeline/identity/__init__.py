"""
Staff identity package.

Maps POS staff ids to people and back again.
"""

from .service import StaffDirectory, StaffIdentityResolver, staff_identity_resolver

__all__ = ["StaffDirectory", "StaffIdentityResolver", "staff_identity_resolver"]
