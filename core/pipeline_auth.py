"""
Bearer-token guard for the pipeline trigger endpoints.

Cron schedulers and operators send the shared PIPELINE_API_TOKEN; the
read-only projection endpoints are not guarded.
"""

import secrets

from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.logging import get_logger
from core.settings import settings

security = HTTPBearer()
log = get_logger("pipeline_auth")


def verify_pipeline_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> str:
    """
    Compare the bearer token against the configured secret in constant time.

    Raises:
        HTTPException: 500 when no secret is configured, 401 on mismatch
    """
    expected = settings.pipeline_api_token.get_secret_value()
    if not expected:
        log.error("pipeline_token_not_configured")
        raise HTTPException(
            status_code=500,
            detail="Server misconfigured: PIPELINE_API_TOKEN not set",
        )

    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        log.warning("pipeline_token_rejected", path=request.url.path)
        raise HTTPException(
            status_code=401,
            detail="Invalid pipeline authentication token",
        )

    return credentials.credentials
