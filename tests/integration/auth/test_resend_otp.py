"""
Integration tests for resending a verification code.

Tests:
- POST /api/auth/resend-otp
"""

import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from unimart.core.otp import OtpTrigger
from tests.utils import as_utc


@pytest.mark.asyncio
class TestResendOtpEndpoint:
    """Test POST /api/auth/resend-otp endpoint."""

    async def test_resend_success(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        pending_account,
        outbox
    ):
        """Resend replaces the stored code and narrows the window to 5 minutes."""
        before = datetime.now(timezone.utc)
        response = await client.post("/api/auth/resend-otp", json={"email": "pending@u.edu"})
        after = datetime.now(timezone.utc)

        assert response.status_code == 200
        assert response.json() == {"message": "OTP resent successfully"}

        assert outbox.sent[-1]["trigger"] == OtpTrigger.RESEND
        await db_session.refresh(pending_account)
        assert pending_account.otp == outbox.last_code("pending@u.edu")
        expiry = as_utc(pending_account.otp_expiry)
        assert before + timedelta(minutes=5) <= expiry <= after + timedelta(minutes=5)

    async def test_resent_code_verifies(self, client: AsyncClient, pending_account, outbox):
        await client.post("/api/auth/resend-otp", json={"email": "pending@u.edu"})
        code = outbox.last_code("pending@u.edu")

        response = await client.post(
            "/api/auth/verify-otp",
            json={"email": "pending@u.edu", "otp": code, "purpose": "register"}
        )

        assert response.status_code == 200

    async def test_previous_code_invalidated(self, client: AsyncClient, pending_account, outbox, mocker):
        mocker.patch("unimart.services.identity.generate_otp", return_value="777777")
        await client.post("/api/auth/resend-otp", json={"email": "pending@u.edu"})

        response = await client.post(
            "/api/auth/verify-otp",
            json={"email": "pending@u.edu", "otp": "123456", "purpose": "register"}
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_or_expired_otp"

    async def test_resend_unknown_email(self, client: AsyncClient, outbox):
        response = await client.post("/api/auth/resend-otp", json={"email": "ghost@u.edu"})

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"
        assert outbox.sent == []

    async def test_resend_delivery_failure(self, client: AsyncClient, pending_account, outbox):
        outbox.fail = True

        response = await client.post("/api/auth/resend-otp", json={"email": "pending@u.edu"})

        assert response.status_code == 503
        assert response.json()["kind"] == "delivery_failure"
