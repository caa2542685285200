"""JWT verification for actor identity.

Tokens are issued by the external auth service (OTP login, sessions); this
service only verifies them. Claims used:
  sub   -> actor id
  name  -> display name, written into approvals and record attribution
  role  -> project role; "operator" marks the supplier side

MVP NOTE: Using HS256 (symmetric HMAC) with the JWT_SECRET shared with the
auth service. No revocation: a token is valid until it expires.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.mo_common.enums import ActorRole
from src.mo_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(actor_id: str, name: str, role: ActorRole = ActorRole.MEMBER) -> str:
    """Issue an access token in the auth service's format (tooling and tests)."""
    now = datetime.now(UTC)
    payload = {
        "sub": actor_id,
        "name": name,
        "role": role.value,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: token invalid, expired, or not an access token.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    return payload
