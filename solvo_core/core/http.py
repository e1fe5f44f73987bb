# solvo_core/core/http.py
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from solvo_core.core.errors import NotFoundError, StateValidationError
from solvo_core.schemas.data import AppData
from solvo_core.services.ai_client import AIError, AINotConfiguredError
from solvo_core.services.storage import StateStore

async def apply_action(store: StateStore, db: AsyncSession, user_id: int, action) -> AppData:
    try:
        return await store.apply(db, user_id, action)
    except NotFoundError as e:
        raise HTTPException(status.HTTP_404_NOT_FOUND, str(e))
    except StateValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))

def ai_http_error(error: AIError) -> HTTPException:
    if isinstance(error, AINotConfiguredError):
        return HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, str(error))
    return HTTPException(status.HTTP_502_BAD_GATEWAY, str(error))

def require(item, kind: str, ident: str):
    if item is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, f"{kind} not found: {ident}")
    return item

def check_path_id(path_id: str, body_id: str):
    if path_id != body_id:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Path ID does not match body ID")
