"""
Bearer session-token authentication.

Tokens are HS256 JWTs minted by the sign-in flow (or ``agora issue-token``)
and carry the user's public id in ``sub``. There is no dev-mode bypass:
without ``SESSION_SECRET`` every protected request is rejected.
"""

from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from agora.config.settings import Settings, get_settings
from agora.errors import InvalidIdentifierError
from agora.identifiers import decode

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def issue_session_token(
    user_id: str,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Mint a session token for a user.

    Args:
        user_id: Public (encoded) user id placed in ``sub``
        settings: Settings providing secret, algorithm, issuer and TTL
        expires_delta: Override for the configured TTL

    Returns:
        Encoded JWT
    """
    settings = settings or get_settings()
    if not settings.sessions_configured:
        raise RuntimeError("SESSION_SECRET is not configured")

    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(minutes=settings.session_ttl_minutes))
    claims = {
        "sub": user_id,
        "iss": settings.session_issuer,
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
    }
    return jwt.encode(claims, settings.session_secret, algorithm=settings.session_algorithm)


async def get_caller_id(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> str:
    """
    Verify the bearer token and return the caller's public user id.

    Raises:
        HTTPException: 401 if the token is missing, malformed, expired,
            from another issuer, or sessions are not configured
    """
    settings = get_settings()

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Missing bearer token")

    if not settings.sessions_configured:
        raise _unauthorized("Session tokens are not configured")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.session_secret,
            algorithms=[settings.session_algorithm],
            issuer=settings.session_issuer,
        )
    except JWTError:
        raise _unauthorized("Invalid or expired session token") from None

    subject = payload.get("sub")
    if not subject:
        raise _unauthorized("Session token has no subject")

    try:
        decode(subject)
    except InvalidIdentifierError:
        raise _unauthorized("Session token subject is not a user id") from None

    return subject.upper()
