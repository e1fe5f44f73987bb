from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from solvo_core.database import get_db
from solvo_core.core.auth import get_current_user
from solvo_core.core.http import apply_action, check_path_id, require
from solvo_core.schemas.client import Client
from solvo_core.services.state import DeleteClient, SaveClient, find_by_id
from solvo_core.services.storage import StateStore, get_state_store

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=List[Client])
async def list_clients(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    return state.clients


@router.get("/{client_id}", response_model=Client)
async def get_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    return require(find_by_id(state.clients, client_id), "Client", client_id)


@router.put("/{client_id}", response_model=Client)
async def save_client(
    client_id: str,
    client_in: Client,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    check_path_id(client_id, client_in.id)
    state = await apply_action(store, db, current_user.id, SaveClient(client_in))
    return find_by_id(state.clients, client_id)


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    # Tasks for this client go with it
    await apply_action(store, db, current_user.id, DeleteClient(client_id))
    return {"message": "Client deleted"}
