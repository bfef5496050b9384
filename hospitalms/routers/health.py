# hospitalms/routers/health.py
from fastapi import APIRouter, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_root():
    return {"status": "ok"}


@router.get("/health/db")
async def health_db(request: Request):
    """
    Runs SELECT 1 against the configured database.
    Returns 503 if there is no connectivity (useful for readiness checks).
    """
    db = request.app.state.db
    try:
        await db.ping()
    except SQLAlchemyError as exc:
        # Don't expose internal details
        raise HTTPException(status_code=503, detail="database_unavailable") from exc
    return {"status": "ok", "database": db.engine.url.get_backend_name()}
