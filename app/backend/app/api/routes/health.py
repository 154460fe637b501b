"""Health check endpoints."""

from fastapi import APIRouter

from app.services.stage_invoicing import STAGE_FEE_PERCENTAGES

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Liveness endpoint; the stage fee table is validated on import."""

    return {"status": "ok", "stage_fee_total": str(sum(STAGE_FEE_PERCENTAGES.values()))}
