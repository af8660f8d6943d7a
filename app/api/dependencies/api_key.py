# app/api/dependencies/api_key.py
from typing import Optional

from fastapi import Header, HTTPException, status

from app.core.config import get_settings


async def verify_api_key(
    api_key: Optional[str] = Header(
        default=None,
        alias="X-Api-Key",
        description="API key required for calendar endpoints in non-local environments.",
    ),
) -> None:
    """
    Dependency to protect the calendar endpoints.

    Rules
    -----
    - APP_ENV in ("local", "test"):
        - If API_KEY is not set -> no auth enforced (convenient for local dev).
        - If API_KEY is set      -> header must match the configured key.
    - APP_ENV not in ("local", "test")  [e.g. dev/stage/prod]:
        - API_KEY must be set, otherwise 500 (misconfiguration).
        - Header must be present and match API_KEY, otherwise 401.
    """
    settings = get_settings()
    env = (settings.APP_ENV or "local").lower()
    expected = getattr(settings, "API_KEY", None)

    if env in ("local", "test") and not expected:
        return

    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API_KEY not configured for this environment.",
        )

    if not api_key or api_key != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key.",
        )
