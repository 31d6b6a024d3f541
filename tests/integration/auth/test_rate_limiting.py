"""
Integration tests for rate limiting on the OTP endpoints.

Limits are counted per email and client IP over a 15 minute window.
"""

import pytest
from httpx import AsyncClient

from unimart.core.config import settings


@pytest.mark.asyncio
class TestOtpRateLimits:
    """Fixed-window limits on verify, resend, forgot and reset."""

    async def test_verify_otp_limited_after_ten_attempts(self, client: AsyncClient, pending_account):
        payload = {"email": "pending@u.edu", "otp": "000000", "purpose": "register"}

        for _ in range(10):
            response = await client.post("/api/auth/verify-otp", json=payload)
            assert response.status_code == 400

        response = await client.post("/api/auth/verify-otp", json=payload)

        assert response.status_code == 429
        assert response.json() == {"detail": "Too many requests", "kind": "rate_limited"}

    async def test_limited_request_never_reaches_service(self, client: AsyncClient, pending_account):
        """Once limited, even the correct code is refused."""
        wrong = {"email": "pending@u.edu", "otp": "000000", "purpose": "register"}
        for _ in range(10):
            await client.post("/api/auth/verify-otp", json=wrong)

        response = await client.post(
            "/api/auth/verify-otp",
            json={"email": "pending@u.edu", "otp": "123456", "purpose": "register"}
        )

        assert response.status_code == 429

    async def test_resend_limited_after_five(self, client: AsyncClient, pending_account, outbox):
        for _ in range(5):
            response = await client.post("/api/auth/resend-otp", json={"email": "pending@u.edu"})
            assert response.status_code == 200

        response = await client.post("/api/auth/resend-otp", json={"email": "pending@u.edu"})

        assert response.status_code == 429
        assert len(outbox.sent) == 5

    async def test_forgot_password_limited_after_five(self, client: AsyncClient, account, outbox):
        for _ in range(5):
            await client.post("/api/auth/forgot-password", json={"email": "student@u.edu"})

        response = await client.post("/api/auth/forgot-password", json={"email": "student@u.edu"})

        assert response.status_code == 429
        assert len(outbox.sent) == 5

    async def test_reset_password_limited_after_ten(self, client: AsyncClient, account):
        payload = {"email": "student@u.edu", "otp": "000000", "new_password": "NewPassword456!"}
        for _ in range(10):
            await client.post("/api/auth/reset-password", json=payload)

        response = await client.post("/api/auth/reset-password", json=payload)

        assert response.status_code == 429

    async def test_limits_are_per_client_ip(self, client: AsyncClient, pending_account):
        for _ in range(5):
            await client.post(
                "/api/auth/resend-otp",
                json={"email": "pending@u.edu"},
                headers={"X-Forwarded-For": "10.0.0.1"}
            )

        response = await client.post(
            "/api/auth/resend-otp",
            json={"email": "pending@u.edu"},
            headers={"X-Forwarded-For": "10.0.0.2"}
        )

        assert response.status_code == 200

    async def test_disabled_rate_limiting(self, client: AsyncClient, pending_account, mocker):
        mocker.patch.object(settings, "RATE_LIMIT_ENABLED", False)

        for _ in range(7):
            response = await client.post("/api/auth/resend-otp", json={"email": "pending@u.edu"})
            assert response.status_code == 200
