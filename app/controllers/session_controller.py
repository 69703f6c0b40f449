"""
Session controller — read-only view of stored sessions.

Refresh hashes are never part of the response.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas import SessionOut
from app.services.session_service import SqlSessionStore

router = APIRouter(prefix="/api/v1/session", tags=["Session"])


@router.get("/list", response_model=list[SessionOut])
async def list_sessions(db: AsyncSession = Depends(get_db)):
    sessions = await SqlSessionStore(db).list_sessions()
    if not sessions:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return [SessionOut.model_validate(s) for s in sessions]
