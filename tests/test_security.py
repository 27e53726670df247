"""Tests for JWT issuing."""

import time
from datetime import datetime, timedelta, timezone

from app.core.config import settings
from app.core.security import jwt_manager


class TestAccessToken:
    def test_claims_use_utc_epoch(self, make_user) -> None:
        """iat is the current epoch regardless of the host timezone."""
        token = jwt_manager.create_access_token(make_user())

        payload = jwt_manager.verify_token(token)

        assert abs(payload["iat"] - time.time()) < 5
        assert payload["exp"] - payload["iat"] == settings.jwt_user_expiration * 3600
        assert payload["role"] == "user"

    def test_expiration_is_aware(self, make_user) -> None:
        token = jwt_manager.create_access_token(make_user(), timedelta(minutes=5))

        expiration = jwt_manager.get_token_expiration(token)

        assert expiration.tzinfo is not None
        remaining = expiration - datetime.now(timezone.utc)
        assert timedelta(minutes=4) < remaining <= timedelta(minutes=5)
