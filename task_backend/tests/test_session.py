import pytest
from fastapi import Response

from src.api.auth import Identity, attach_session, clear_session, read_session_token, require_identity
from src.api.errors import UnauthorizedError
from src.api.settings import Settings
from src.api.tokens import TokenCodec

from conftest import TEST_SECRET

DEV = Settings(database_url="memory://", jwt_secret=TEST_SECRET)
PROD = Settings(database_url="memory://", jwt_secret=TEST_SECRET, app_env="production")


def _set_cookie_header(settings: Settings) -> str:
    response = Response()
    attach_session(response, "abc", settings)
    return response.headers["set-cookie"].lower()


class TestSessionCookie:
    def test_cookie_attributes(self):
        header = _set_cookie_header(DEV)
        assert header.startswith("token=abc")
        assert "httponly" in header
        assert "samesite=lax" in header
        assert "max-age=604800" in header
        assert "path=/" in header
        assert "secure" not in header

    def test_secure_in_production(self):
        assert "secure" in _set_cookie_header(PROD)

    def test_clear_expires_cookie(self):
        response = Response()
        clear_session(response, DEV)
        header = response.headers["set-cookie"].lower()
        assert header.startswith('token=""') or header.startswith("token=;")
        assert "max-age=0" in header

    def test_absent_cookie_reads_as_anonymous(self):
        assert read_session_token(None) is None
        assert read_session_token("") is None
        assert read_session_token("t") == "t"


class TestAuthGuard:
    codec = TokenCodec(TEST_SECRET)

    def test_resolves_identity(self):
        token = self.codec.issue("user-7")
        assert require_identity(token=token, codec=self.codec) == Identity(user_id="user-7")

    def test_fails_closed_without_token(self):
        with pytest.raises(UnauthorizedError):
            require_identity(token=None, codec=self.codec)

    def test_fails_closed_on_bad_token(self):
        forged = TokenCodec("other-secret-0123456789abcdef0123456789ab").issue("user-7")
        with pytest.raises(UnauthorizedError):
            require_identity(token=forged, codec=self.codec)
