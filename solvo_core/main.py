# solvo_core/main.py
from fastapi import FastAPI
from solvo_core.config import settings
from solvo_core.database import engine, Base
from solvo_core.models.user import User
from solvo_core.models.storage import CollectionBlob
from solvo_core.routers import auth, team, kpi, tasks, clients, performance, ptl, assistant, data
import logging
from sqlalchemy import exc as sa_exc

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="Solvo Core", version="1.0")

# Include Routers
app.include_router(auth.router)
app.include_router(team.router)
app.include_router(kpi.router)
app.include_router(tasks.router)
app.include_router(clients.router)
app.include_router(performance.router)
app.include_router(ptl.router)
app.include_router(assistant.router)
app.include_router(data.router)

@app.on_event("startup")
async def startup_event():
    # create tables (async). ignore duplicate-object errors from previous partial runs.
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                logging.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise
    if not settings.ai_configured:
        logging.warning("AI_API_BASE_URL is not set; AI narratives and the assistant are disabled")

@app.get("/")
def read_root():
    return {"message": "Welcome to Solvo Core"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("solvo_core.main:app", host="0.0.0.0", port=8000, reload=True)
