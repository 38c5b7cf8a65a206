from fastapi import APIRouter

from app.core.config import settings

router = APIRouter()

@router.get("/z")
def healthz():
    # Check si l'API est up, et si le chat a une clé
    return {"status": "ok", "chat_configured": bool(settings.CHAT_API_KEY)}
