"""
FastAPI dependencies - identity resolution from bearer tokens.
Challenge: Reusable auth, consistent error responses.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from marketplace.db.session import DbSession
from marketplace.db.repositories.user_repository import UserRepository
from marketplace.core.permissions import Identity
from marketplace.core.security import decode_access_token

security = HTTPBearer(auto_error=False)


async def get_current_identity(
    session: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Identity:
    """Resolve JWT to the acting user and role. Raises 401 if missing or invalid."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    repo = UserRepository(session)
    user = await repo.get_by_id(int(payload["sub"]))
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    # Role comes from the user record, not the token, so demotions apply immediately
    return Identity(id=user.id, role=user.role)


# Optional auth: for routes that show more to owners and admins
async def get_optional_identity(
    session: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Identity | None:
    """Return identity if a valid token names an active user, else None (anonymous)."""
    if not credentials:
        return None
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        return None
    user = await UserRepository(session).get_by_id(int(payload["sub"]))
    if not user or not user.is_active:
        return None
    return Identity(id=user.id, role=user.role)


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
OptionalIdentity = Annotated[Identity | None, Depends(get_optional_identity)]
