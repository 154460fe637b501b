"""Resource plan export endpoint."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.db.dependencies import get_db_session
from app.services.planning_service import PlanningService

router = APIRouter(prefix="/exports", tags=["exports"])


@router.get("/projects/{project_id}/resource-plan")
def export_resource_plan(
    project_id: UUID,
    format: str = Query(default="xlsx"),
    db: Session = Depends(get_db_session),
) -> Response:
    exported = PlanningService(db).export_resource_plan(project_id, format_name=format)
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
