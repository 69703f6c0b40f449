"""
User controller — create & list users.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas import CreateUserRequest, UserOut
from app.services.user_service import DuplicateEmailError, SqlUserStore

router = APIRouter(prefix="/api/v1/user", tags=["User"])


@router.post("/create", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(body: CreateUserRequest, db: AsyncSession = Depends(get_db)):
    try:
        user = await SqlUserStore(db).create(body.email)
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return UserOut.model_validate(user)


@router.get("/list", response_model=list[UserOut])
async def list_users(db: AsyncSession = Depends(get_db)):
    users = await SqlUserStore(db).list_users()
    if not users:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return [UserOut.model_validate(u) for u in users]
