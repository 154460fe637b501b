"""Repository helpers for projects, phases, users and the assignment ledger."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.models.entities import Phase, Project, ResourceAssignment, User


class PlanningRepository:
    """Persistence operations used by resourcing and burn services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Users ----------
    def get_user(self, user_id: UUID) -> User | None:
        return self.db.scalar(select(User).where(User.id == user_id))

    def add_user(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    # ---------- Projects ----------
    def get_project(self, project_id: UUID) -> Project | None:
        return self.db.scalar(select(Project).where(Project.id == project_id))

    def list_projects(self) -> list[Project]:
        return self.db.scalars(select(Project).order_by(Project.code.asc())).all()

    def add_project(self, project: Project) -> Project:
        self.db.add(project)
        self.db.flush()
        return project

    # ---------- Phases ----------
    def list_phases(self, project_id: UUID) -> list[Phase]:
        return self.db.scalars(
            select(Phase)
            .where(Phase.project_id == project_id)
            .order_by(Phase.phase_number.asc())
        ).all()

    def get_phase(self, phase_id: UUID) -> Phase | None:
        return self.db.scalar(select(Phase).where(Phase.id == phase_id))

    def add_phase(self, phase: Phase) -> Phase:
        self.db.add(phase)
        self.db.flush()
        return phase

    # ---------- Assignment ledger ----------
    def get_assignment(self, assignment_id: UUID) -> ResourceAssignment | None:
        return self.db.scalar(select(ResourceAssignment).where(ResourceAssignment.id == assignment_id))

    def add_assignment(self, assignment: ResourceAssignment) -> ResourceAssignment:
        self.db.add(assignment)
        self.db.flush()
        return assignment

    def delete_assignment(self, assignment: ResourceAssignment) -> None:
        self.db.delete(assignment)
        self.db.flush()

    def list_assignments_for_phase(self, phase_id: UUID) -> list[ResourceAssignment]:
        return self.db.scalars(
            select(ResourceAssignment)
            .where(ResourceAssignment.phase_id == phase_id)
            .order_by(ResourceAssignment.created_at.asc(), ResourceAssignment.user_id.asc())
        ).all()

    def list_assignments_for_project(self, project_id: UUID) -> list[ResourceAssignment]:
        return self.db.scalars(
            select(ResourceAssignment)
            .join(Phase, Phase.id == ResourceAssignment.phase_id)
            .where(Phase.project_id == project_id)
            .order_by(
                Phase.phase_number.asc(),
                ResourceAssignment.created_at.asc(),
                ResourceAssignment.user_id.asc(),
            )
        ).all()

    def list_active_assignments_for_user(
        self,
        user_id: UUID,
        *,
        week_start: date,
        week_end: date,
    ) -> list[ResourceAssignment]:
        """All of a user's assignments, across every project, overlapping the window."""

        return self.db.scalars(
            select(ResourceAssignment)
            .where(
                and_(
                    ResourceAssignment.user_id == user_id,
                    or_(
                        ResourceAssignment.start_date.is_(None),
                        ResourceAssignment.start_date <= week_end,
                    ),
                    or_(
                        ResourceAssignment.end_date.is_(None),
                        ResourceAssignment.end_date >= week_start,
                    ),
                )
            )
            .order_by(ResourceAssignment.start_date.asc(), ResourceAssignment.created_at.asc())
        ).all()
