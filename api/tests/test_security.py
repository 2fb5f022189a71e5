import pytest
from fastapi import HTTPException

from app.core.errors import ConfigurationError
from app.core.security import AccessGuard


class TestAccessGuard:
    def test_matching_credential_passes(self):
        AccessGuard("hunter2").verify("hunter2")

    @pytest.mark.parametrize("credential", [None, "", "hunter", "hunter2 ", "Bearer hunter2"])
    def test_mismatch_is_unauthorized(self, credential):
        with pytest.raises(HTTPException) as exc_info:
            AccessGuard("hunter2").verify(credential)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Unauthorized"

    @pytest.mark.parametrize("secret", [None, ""])
    def test_missing_secret_is_configuration_error(self, secret):
        """A misconfigured server must not look like a bad credential."""
        with pytest.raises(ConfigurationError):
            AccessGuard(secret).verify("anything")

    def test_non_ascii_credentials(self):
        guard = AccessGuard("pässwörd")
        guard.verify("pässwörd")
        with pytest.raises(HTTPException):
            guard.verify("passwort")
