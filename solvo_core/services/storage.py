"""Per-user application state backed by one JSON blob per collection.

Every change rewrites each touched collection in full under
``<prefix>-<collection>-<user_id>``. There is no merge: two processes writing
the same key overwrite each other and the last write wins. When a write
fails the cached state stays authoritative for this process.
"""
import json
import logging
from typing import Dict, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from solvo_core.config import settings
from solvo_core.models.storage import CollectionBlob
from solvo_core.schemas.data import AppData, COLLECTIONS
from solvo_core.services.state import changed_collections, reduce

logger = logging.getLogger(__name__)


class StateStore:
    def __init__(self, prefix: str):
        self.prefix = prefix
        self._cache: Dict[int, AppData] = {}

    def key_for(self, collection: str, user_id: int) -> str:
        return f"{self.prefix}-{collection}-{user_id}"

    async def load(self, db: AsyncSession, user_id: int) -> AppData:
        cached = self._cache.get(user_id)
        if cached is not None:
            return cached

        result = await db.execute(select(CollectionBlob).where(CollectionBlob.user_id == user_id))
        blobs = {blob.key: blob.payload for blob in result.scalars()}

        values = {}
        for name in COLLECTIONS:
            key = self.key_for(name, user_id)
            raw = blobs.get(key)
            if raw is None:
                continue
            try:
                values[name] = getattr(AppData.model_validate({name: json.loads(raw)}), name)
            except ValueError as e:
                # Unreadable blob: start that collection empty rather than failing the session
                logger.warning("Error reading storage key %s: %s", key, e)

        data = AppData(**values)
        self._cache[user_id] = data
        return data

    async def save(self, db: AsyncSession, user_id: int, old: AppData, new: AppData) -> Tuple[str, ...]:
        self._cache[user_id] = new
        names = changed_collections(old, new)
        if not names:
            return names

        try:
            for name in names:
                key = self.key_for(name, user_id)
                payload = json.dumps([item.model_dump(mode="json") for item in getattr(new, name)])
                result = await db.execute(select(CollectionBlob).where(CollectionBlob.key == key))
                blob = result.scalar_one_or_none()
                if blob is None:
                    db.add(CollectionBlob(key=key, user_id=user_id, collection=name, payload=payload))
                else:
                    blob.payload = payload
            await db.commit()
        except (SQLAlchemyError, TypeError, ValueError):
            logger.exception("Error setting storage for user=%s collections=%s", user_id, ",".join(names))
            await db.rollback()
        return names

    async def apply(self, db: AsyncSession, user_id: int, action) -> AppData:
        old = await self.load(db, user_id)
        new = reduce(old, action)
        await self.save(db, user_id, old, new)
        return new


state_store = StateStore(settings.STORAGE_PREFIX)

def get_state_store() -> StateStore:
    return state_store
