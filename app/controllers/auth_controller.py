"""
Auth controller — login & token refresh.

Both routes are public.  Error kinds raised by the auth service are
turned into HTTP responses by ``app.controllers.error_handlers``.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_auth_service
from app.schemas import ErrorResponse, RefreshTokenRequest, TokenPairResponse
from app.services.auth_service import AuthService
from app.services.user_service import SqlUserStore

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])

error_responses = {
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
    status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    status.HTTP_504_GATEWAY_TIMEOUT: {"model": ErrorResponse},
}


def client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


@router.get("/login/{user_id}", response_model=TokenPairResponse, responses=error_responses)
async def login(
    user_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    """Start (or restart) the session of an existing user → JWT + refresh pair."""
    user = await SqlUserStore(db).get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    pair = await auth.create_session(user.id, client_ip(request))
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/refresh", response_model=TokenPairResponse, responses=error_responses)
async def refresh(
    body: RefreshTokenRequest,
    request: Request,
    authorization: str | None = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
):
    """Exchange the current access + refresh pair for a new one."""
    access_token = (authorization or "").removeprefix("Bearer ").strip()
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="authorization token is empty",
            headers={"WWW-Authenticate": "Bearer"},
        )

    pair = await auth.refresh_session(access_token, body.refresh_token, client_ip(request))
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)
