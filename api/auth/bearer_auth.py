"""Shared-secret bearer authentication for FastAPI."""
import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def verify_secret(token: Optional[str], secret: str) -> bool:
    """Constant-time comparison of a presented token against the secret."""
    if not token or not secret:
        return False
    return secrets.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))


class SharedSecretAuth:
    """
    Bearer token check against a single configured secret.

    The secret is read from request.app.state.config unless one is passed in.
    Missing, malformed and wrong credentials all fail with 403.
    """

    def __init__(self, secret: Optional[str] = None):
        self.secret = secret

    def _resolve_secret(self, request: Request) -> str:
        if self.secret is not None:
            return self.secret
        config = getattr(request.app.state, "config", None)
        return config.secret_key if config else ""

    async def __call__(
        self,
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    ) -> str:
        token = credentials.credentials if credentials else None

        if not verify_secret(token, self._resolve_secret(request)):
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Rejected {request.method} {request.url.path} from {client}: bad credential")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid credential",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return token


require_secret = SharedSecretAuth()
