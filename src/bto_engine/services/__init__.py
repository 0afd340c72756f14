"""Service layer for the allocation engine.

- AllocationService: applications, withdrawals, staffing, projects,
  enquiries and reports over a registry store
- AuthService: authentication and account creation

Production Usage:
    from bto_engine.factory import create_services
    allocation, auth = create_services()
    allocation.submit_application("S1234567A", "Acacia Breeze", FlatType.TWO_ROOM)
"""

from bto_engine.services.allocation_service import AllocationService
from bto_engine.services.auth_service import AuthService

__all__ = ["AllocationService", "AuthService"]
