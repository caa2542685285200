"""FastAPI dependency: get_current_actor.

Usage in any protected router:
    from src.mo_gateway.auth.dependencies import get_current_actor

    @router.post("/orders/{order_id}/approve")
    async def approve(actor: Actor = Depends(get_current_actor)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.mo_common.enums import ActorRole
from src.mo_common.errors import InvalidCredentialsError
from src.mo_gateway.auth.jwt_handler import decode_token
from src.mo_order.domain.models import Actor

bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    """Resolve the Bearer token into an Actor.

    Raises HTTP 401 if the token is missing, invalid, expired, or carries an
    unknown role.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    actor_id = payload.get("sub")
    if not actor_id:
        raise _CREDENTIALS_EXCEPTION
    try:
        role = ActorRole(payload.get("role", ActorRole.MEMBER.value))
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None

    return Actor(id=actor_id, name=payload.get("name") or actor_id, role=role)
