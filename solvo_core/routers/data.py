from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
import logging
from solvo_core.database import get_db
from solvo_core.core.auth import get_current_user
from solvo_core.core.http import apply_action
from solvo_core.schemas.data import AppData, COLLECTIONS, DataExportResponse, DataImportRequest, DataImportResponse
from solvo_core.services.state import ReplaceState
from solvo_core.services.storage import StateStore, get_state_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["data"])


def _export(state: AppData, file_name: str) -> DataExportResponse:
    return DataExportResponse(file_name=file_name, exported_at=datetime.now(timezone.utc), data=state)


@router.get("/export", response_model=DataExportResponse)
async def export_data(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    now = datetime.now(timezone.utc)
    return _export(state, f"solvo_core_export_{now.date().isoformat()}.json")


@router.post("/import", response_model=DataImportResponse)
async def import_data(
    data_in: DataImportRequest,
    confirm: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Importing overwrites all current data. Repeat the request with confirm=true to continue."
        )

    # 1. Back up what is about to be overwritten
    current = await store.load(db, current_user.id)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    backup = _export(current, f"solvo_core_auto_backup_{stamp}.json")

    # 2. Replace every collection; scores are recomputed from the imported ledger
    data = AppData(**{name: getattr(data_in, name) for name in COLLECTIONS})
    await apply_action(store, db, current_user.id, ReplaceState(data))

    logger.info("Imported data for user=%s", current_user.id)
    return DataImportResponse(message="Data imported successfully!", backup=backup)
