from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from solvo_core.database import get_db
from solvo_core.core.auth import get_current_user
from solvo_core.core.http import apply_action, check_path_id, require
from solvo_core.schemas.task import Task, TaskStatus, TaskUpdateStatus
from solvo_core.services.state import ChangeTaskStatus, DeleteTask, SaveTask, find_by_id
from solvo_core.services.storage import StateStore, get_state_store

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[Task])
async def list_tasks(
    assigned_to: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    tasks = state.tasks
    if assigned_to is not None:
        tasks = [t for t in tasks if t.assigned_to == assigned_to]
    if status is not None:
        tasks = [t for t in tasks if t.status == status]
    return tasks


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    return require(find_by_id(state.tasks, task_id), "Task", task_id)


@router.put("/{task_id}", response_model=Task)
async def save_task(
    task_id: str,
    task_in: Task,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    check_path_id(task_id, task_in.id)
    state = await apply_action(store, db, current_user.id, SaveTask(task_in))
    return find_by_id(state.tasks, task_id)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    await apply_action(store, db, current_user.id, DeleteTask(task_id))
    return {"message": "Task deleted"}


@router.post("/{task_id}/status", response_model=Task)
async def update_task_status(
    task_id: str,
    status_in: TaskUpdateStatus,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await apply_action(store, db, current_user.id, ChangeTaskStatus(task_id, status_in.status))
    return find_by_id(state.tasks, task_id)
