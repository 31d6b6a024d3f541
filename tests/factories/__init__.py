"""
Data factories for test data generation.

Factories use factory-boy to create realistic test data with sensible defaults.
All factories support async creation via create_async() method.

Usage:
    from tests.factories import AccountFactory

    # Verified account with password "Password123!"
    account = await AccountFactory.create_async(db_session, email="custom@u.edu")

    # Unverified account holding a pending OTP
    account = await AccountFactory.create_pending_async(db_session, otp="123456")
"""

from tests.factories.account import AccountFactory

__all__ = [
    "AccountFactory",
]
