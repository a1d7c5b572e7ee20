from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from jose import jwt

from app.errors import ApiError
from app.security import (
    _FAILED_ATTEMPTS,
    create_access_token,
    decode_token,
    ensure_login_attempt_allowed,
    hash_password,
    register_login_failure,
    register_login_success,
    require_superuser,
    verify_admin_credentials,
)
from app.settings import get_settings


class SecurityFeatureTests(unittest.TestCase):
    def setUp(self) -> None:
        get_settings.cache_clear()
        _FAILED_ATTEMPTS.clear()

    def tearDown(self) -> None:
        get_settings.cache_clear()
        _FAILED_ATTEMPTS.clear()

    def test_access_token_roundtrip_keeps_superuser_claim(self) -> None:
        with patch.dict(os.environ, {"JWT_SECRET": "jwt-test-secret"}, clear=False):
            get_settings.cache_clear()
            token, expires_in, claims = create_access_token(sub="admin", username="admin", is_superuser=True)
            payload = decode_token(token)

        self.assertEqual(expires_in, get_settings().access_token_minutes * 60)
        self.assertEqual(payload["jti"], claims["jti"])
        self.assertTrue(payload["is_superuser"])
        self.assertEqual(require_superuser(payload), payload)

    def test_token_signed_with_other_secret_is_rejected(self) -> None:
        with patch.dict(os.environ, {"JWT_SECRET": "jwt-test-secret"}, clear=False):
            get_settings.cache_clear()
            settings = get_settings()
            forged = jwt.encode(
                {"sub": "admin", "iss": settings.jwt_issuer, "aud": settings.jwt_audience, "typ": "access"},
                "another-secret",
                algorithm="HS256",
            )
            with self.assertRaises(ApiError) as ctx:
                decode_token(forged)
        self.assertEqual(ctx.exception.status_code, 401)

    def test_non_superuser_claims_are_forbidden(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            require_superuser({"sub": "clerk", "is_superuser": False})
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.message, "This action requires superuser privileges.")

    def test_admin_credentials_accept_quoted_env_hash(self) -> None:
        password_hash = hash_password("s3cret-pass")
        with patch.dict(
            os.environ,
            {"ADMIN_USER": "admin", "ADMIN_PASS_HASH": f"'{password_hash}'"},
            clear=False,
        ):
            get_settings.cache_clear()
            self.assertTrue(verify_admin_credentials("admin", "s3cret-pass"))
            self.assertFalse(verify_admin_credentials("admin", "wrong"))
            self.assertFalse(verify_admin_credentials("someone", "s3cret-pass"))

    def test_login_throttle_blocks_after_repeated_failures(self) -> None:
        for _ in range(10):
            register_login_failure("10.0.0.1")
        with self.assertRaises(ApiError) as ctx:
            ensure_login_attempt_allowed("10.0.0.1")
        self.assertEqual(ctx.exception.status_code, 429)

        register_login_success("10.0.0.1")
        ensure_login_attempt_allowed("10.0.0.1")


if __name__ == "__main__":
    unittest.main()
