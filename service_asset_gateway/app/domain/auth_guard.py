"""
Shared-secret guard for mutating requests.
"""

import hmac
from typing import Optional

from fastapi import Request

from shared.errors import AuthenticationError
from shared.logging import get_logger

READ_METHODS = frozenset({"GET", "HEAD"})
DEFAULT_AUTH_HEADER = "X-Custom-Auth-Key"


class AuthGuard:
    """Allow reads unconditionally; require the shared secret for everything else.

    The check is pure: it never touches the stores, so it can run ahead of any
    handler and an unauthorized request can never cause a partial write. When
    no secret is configured every mutation is rejected.
    """

    def __init__(self, secret: Optional[str], header_name: str = DEFAULT_AUTH_HEADER):
        self.header_name = header_name
        self._secret = secret.encode("utf-8") if secret else None
        self.logger = get_logger("asset-gateway.auth_guard")

    def is_allowed(self, method: str, credential: Optional[bytes]) -> bool:
        """Decide whether a request with ``credential`` may proceed."""
        if method.upper() in READ_METHODS:
            return True
        if self._secret is None or credential is None:
            return False
        return hmac.compare_digest(credential, self._secret)

    async def __call__(self, request: Request) -> None:
        """FastAPI dependency: raise AuthenticationError unless the request may proceed."""
        value = request.headers.get(self.header_name)
        # Starlette decodes header values as latin-1, so this restores the raw bytes
        credential = value.encode("latin-1") if value is not None else None

        if self.is_allowed(request.method, credential):
            return

        self.logger.warning(
            "Rejected mutation without valid credential",
            method=request.method,
            path=request.url.path,
            reason="missing" if credential is None else "mismatch",
        )
        raise AuthenticationError(
            "Valid credential required",
            {"header": self.header_name},
        )
