import hmac
import logging

from fastapi import Depends, Header, HTTPException, Request, status

from app.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class AccessGuard:
    """Shared-secret check for the dashboard endpoints.

    Stateless: the credential is compared against ``secret`` on every call.
    """

    def __init__(self, secret: str | None) -> None:
        self.secret = secret or ""

    def verify(self, credential: str | None) -> None:
        if not self.secret:
            logger.error("Rejected stats request: ADMIN_PASSWORD is not set")
            raise ConfigurationError("ADMIN_PASSWORD is not set")
        if credential is None or not hmac.compare_digest(
            credential.encode("utf-8"), self.secret.encode("utf-8")
        ):
            logger.warning("Rejected stats request with invalid credential")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def get_access_guard(request: Request) -> AccessGuard:
    guard = getattr(request.app.state, "access_guard", None)
    if guard is None:
        raise ConfigurationError("access guard is not configured")
    return guard


async def require_dashboard_access(
    authorization: str | None = Header(None, alias="Authorization"),
    guard: AccessGuard = Depends(get_access_guard),
) -> None:
    """Dependency: reject the request unless it carries the dashboard secret."""
    guard.verify(authorization)
