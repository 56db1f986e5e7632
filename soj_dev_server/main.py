"""
SOJ dev server: the user endpoints and token contract the client depends on.
Port 8080 by default.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from soj_dev_server.database import init_db, open_session
from soj_dev_server.keys import get_signing_key
from soj_dev_server.seed import seed_from_env
from soj_dev_server.users import router as users_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, load signing key, seed user from env on startup."""
    init_db()
    get_signing_key()
    db = open_session()
    try:
        seed_from_env(db)
    finally:
        db.close()
    yield


app = FastAPI(title="SOJ Dev Server", version="0.1.0", lifespan=lifespan)
app.include_router(users_router, tags=["user"])


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "soj_dev_server"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "soj_dev_server.main:app",
        host="127.0.0.1",
        port=8080,
        reload=True,
    )
