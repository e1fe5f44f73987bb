from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, func
from solvo_core.database import Base

class CollectionBlob(Base):
    """One JSON array per (user, collection). Rewritten whole on every change."""
    __tablename__ = "collection_blobs"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, nullable=False)  # "<prefix>-<collection>-<user_id>"
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    collection = Column(String, nullable=False)
    payload = Column(Text, nullable=False, default="[]")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("key", name="uq_collection_blob_key"),
    )
