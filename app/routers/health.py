from fastapi import APIRouter, Request
from sqlalchemy import text

router = APIRouter()

@router.get("/z")
def healthz():
    # Check si l'API est up
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request):
    # Check que la base répond
    store = request.app.state.store
    with store.engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "subscribers": request.app.state.hub.subscriber_count}
