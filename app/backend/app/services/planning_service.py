"""Application service for projects, the assignment ledger, burn and utilization."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.entities import (
    Phase,
    Project,
    ProjectStage,
    ProjectStatus,
    ResourceAssignment,
    User,
)
from app.repositories.planning_repository import PlanningRepository
from app.services.burn import BurnSnapshot, CostLine, compute_burn_snapshot
from app.services.compensation import (
    DEFAULT_OVERHEAD_MULTIPLIER,
    DEFAULT_TYPICAL_HOURS_PER_MONTH,
    CompensationProfile,
    resolve_hourly_rate,
)
from app.services.stage_invoicing import STAGE_LABELS
from app.services.utilization import UtilizationResult, evaluate_utilization, week_window

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")
ONE = Decimal("1")


def _money(value: Decimal) -> str:
    return str(Decimal(value).quantize(Q2))


@dataclass(slots=True)
class UserCreateData:
    email: str
    display_name: str
    monthly_salary: Decimal = ZERO
    typical_hours_per_month: int = DEFAULT_TYPICAL_HOURS_PER_MONTH
    overhead_multiplier: Decimal = DEFAULT_OVERHEAD_MULTIPLIER
    tax_rate: Decimal = ZERO
    insurance_deduction: Decimal = ZERO


@dataclass(slots=True)
class CompensationUpdateData:
    monthly_salary: Decimal | None = None
    typical_hours_per_month: int | None = None
    overhead_multiplier: Decimal | None = None
    tax_rate: Decimal | None = None
    insurance_deduction: Decimal | None = None


@dataclass(slots=True)
class ProjectCreateData:
    code: str
    name: str
    client_name: str | None
    total_fee: Decimal
    target_profit_margin: Decimal = Decimal("0.20")
    project_stage: ProjectStage = ProjectStage.CONCEPT
    lifecycle_stages: list[ProjectStage] | None = None


@dataclass(slots=True)
class ProjectFinancialsUpdateData:
    total_fee: Decimal | None = None
    target_profit_margin: Decimal | None = None


@dataclass(slots=True)
class AssignmentCreateData:
    user_id: UUID
    phase_id: UUID
    planned_hours: int
    start_date: date | None = None
    end_date: date | None = None


@dataclass(slots=True)
class AssignmentResult:
    assignment: ResourceAssignment
    utilization: UtilizationResult


@dataclass(slots=True)
class ExportFilePayload:
    media_type: str
    filename: str
    content: bytes


class PlanningService:
    """Resourcing, burn and utilization rules over the assignment ledger."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PlanningRepository(db)

    # ---------- Lookups ----------
    def _require_user(self, user_id: UUID) -> User:
        user = self.repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    def _require_project(self, project_id: UUID) -> Project:
        project = self.repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project not found.")
        return project

    def _require_phase(self, phase_id: UUID) -> Phase:
        phase = self.repo.get_phase(phase_id)
        if phase is None:
            raise NotFoundError("Phase not found.")
        return phase

    def _require_assignment(self, assignment_id: UUID) -> ResourceAssignment:
        assignment = self.repo.get_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError("Resource assignment not found.")
        return assignment

    # ---------- Validation ----------
    @staticmethod
    def _validate_margin(value: Decimal) -> None:
        if value < ZERO or value >= ONE:
            raise ValidationError("target_profit_margin must be within [0, 1).")

    @staticmethod
    def _validate_non_negative(value: Decimal, field_name: str) -> None:
        if value < ZERO:
            raise ValidationError(f"{field_name} must be greater or equal zero.")

    @staticmethod
    def _validate_assignment_window(planned_hours: int, start_date: date | None, end_date: date | None) -> None:
        if planned_hours <= 0:
            raise ValidationError("planned_hours must be greater than zero.")
        if start_date is not None and end_date is not None and end_date < start_date:
            raise ValidationError("end_date must be greater than or equal to start_date.")

    @staticmethod
    def compensation_profile(user: User) -> CompensationProfile:
        return CompensationProfile(
            monthly_salary=user.monthly_salary,
            typical_hours_per_month=user.typical_hours_per_month,
            overhead_multiplier=user.overhead_multiplier,
        )

    # ---------- Serialization ----------
    @staticmethod
    def serialize_user(user: User) -> dict[str, object]:
        return {
            "id": str(user.id),
            "email": user.email,
            "display_name": user.display_name,
            "active": user.active,
            "monthly_salary": _money(user.monthly_salary),
            "typical_hours_per_month": user.typical_hours_per_month,
            "overhead_multiplier": str(user.overhead_multiplier),
            "tax_rate": str(user.tax_rate),
            "insurance_deduction": _money(user.insurance_deduction),
            "hourly_billing_rate": _money(resolve_hourly_rate(PlanningService.compensation_profile(user))),
        }

    @staticmethod
    def serialize_project(project: Project) -> dict[str, object]:
        return {
            "id": str(project.id),
            "code": project.code,
            "name": project.name,
            "client_name": project.client_name,
            "total_fee": _money(project.total_fee),
            "target_profit_margin": str(project.target_profit_margin),
            "project_stage": project.project_stage.value,
            "status": project.status.value,
            "created_at": project.created_at.isoformat(),
            "updated_at": project.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_phase(phase: Phase) -> dict[str, object]:
        return {
            "id": str(phase.id),
            "project_id": str(phase.project_id),
            "stage": phase.stage.value,
            "name": phase.name,
            "phase_number": phase.phase_number,
            "budget_share_percentage": (
                str(phase.budget_share_percentage) if phase.budget_share_percentage is not None else None
            ),
        }

    @staticmethod
    def serialize_assignment(assignment: ResourceAssignment) -> dict[str, object]:
        return {
            "id": str(assignment.id),
            "user_id": str(assignment.user_id),
            "phase_id": str(assignment.phase_id),
            "planned_hours": assignment.planned_hours,
            "billing_rate": _money(assignment.billing_rate),
            "planned_cost": _money(assignment.billing_rate * assignment.planned_hours),
            "start_date": assignment.start_date.isoformat() if assignment.start_date else None,
            "end_date": assignment.end_date.isoformat() if assignment.end_date else None,
        }

    @staticmethod
    def serialize_utilization(result: UtilizationResult) -> dict[str, object]:
        return {
            "week_start": result.week_start.isoformat(),
            "week_end": result.week_end.isoformat(),
            "total_hours_planned": result.total_hours_planned,
            "capacity_hours": result.capacity_hours,
            "is_over_utilized": result.is_over_utilized,
            "hours_over_limit": result.hours_over_limit,
        }

    @staticmethod
    def serialize_burn(snapshot: BurnSnapshot) -> dict[str, object]:
        return {
            "total_fee": _money(snapshot.total_fee),
            "target_profit_margin": str(snapshot.target_profit_margin),
            "production_budget": _money(snapshot.production_budget),
            "current_burn": _money(snapshot.current_burn),
            "burn_percentage": _money(snapshot.burn_percentage),
            "status": snapshot.status.value,
            "assignment_count": snapshot.assignment_count,
        }

    # ---------- Users ----------
    def create_user(self, data: UserCreateData) -> User:
        self._validate_non_negative(data.monthly_salary, "monthly_salary")
        self._validate_non_negative(data.tax_rate, "tax_rate")
        self._validate_non_negative(data.insurance_deduction, "insurance_deduction")
        if data.typical_hours_per_month <= 0:
            raise ValidationError("typical_hours_per_month must be greater than zero.")
        if data.overhead_multiplier < ONE:
            raise ValidationError("overhead_multiplier must be greater or equal 1.")

        now = datetime.utcnow()
        user = User(
            email=data.email.strip().lower(),
            display_name=data.display_name.strip(),
            active=True,
            monthly_salary=data.monthly_salary,
            typical_hours_per_month=data.typical_hours_per_month,
            overhead_multiplier=data.overhead_multiplier,
            tax_rate=data.tax_rate,
            insurance_deduction=data.insurance_deduction,
            created_at=now,
            updated_at=now,
        )
        try:
            self.repo.add_user(user)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("User email already exists.") from exc

        self.db.refresh(user)
        return user

    def get_user(self, user_id: UUID) -> User:
        return self._require_user(user_id)

    def update_compensation(self, user_id: UUID, data: CompensationUpdateData) -> User:
        """Edit a user's compensation profile.

        Existing assignments keep the billing rate they were created with.
        """

        user = self._require_user(user_id)
        if data.monthly_salary is not None:
            self._validate_non_negative(data.monthly_salary, "monthly_salary")
            user.monthly_salary = data.monthly_salary
        if data.typical_hours_per_month is not None:
            if data.typical_hours_per_month <= 0:
                raise ValidationError("typical_hours_per_month must be greater than zero.")
            user.typical_hours_per_month = data.typical_hours_per_month
        if data.overhead_multiplier is not None:
            if data.overhead_multiplier < ONE:
                raise ValidationError("overhead_multiplier must be greater or equal 1.")
            user.overhead_multiplier = data.overhead_multiplier
        if data.tax_rate is not None:
            self._validate_non_negative(data.tax_rate, "tax_rate")
            user.tax_rate = data.tax_rate
        if data.insurance_deduction is not None:
            self._validate_non_negative(data.insurance_deduction, "insurance_deduction")
            user.insurance_deduction = data.insurance_deduction
        user.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(user)
        return user

    def hourly_rate(self, user_id: UUID) -> Decimal:
        return resolve_hourly_rate(self.compensation_profile(self._require_user(user_id)))

    # ---------- Projects and phases ----------
    def create_project(self, data: ProjectCreateData) -> tuple[Project, list[Phase]]:
        """Create a project with one phase per selected lifecycle stage."""

        self._validate_non_negative(data.total_fee, "total_fee")
        self._validate_margin(data.target_profit_margin)

        stages = data.lifecycle_stages or list(ProjectStage)
        ordered_stages = sorted(set(stages), key=lambda stage: stage.position)

        now = datetime.utcnow()
        project = Project(
            code=data.code.strip(),
            name=data.name.strip(),
            client_name=data.client_name.strip() if data.client_name else None,
            total_fee=data.total_fee,
            target_profit_margin=data.target_profit_margin,
            project_stage=data.project_stage,
            status=ProjectStatus.INACTIVE if data.project_stage is ProjectStage.COMPLETION else ProjectStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )

        phases: list[Phase] = []
        try:
            self.repo.add_project(project)
            for number, stage in enumerate(ordered_stages, start=1):
                phases.append(
                    self.repo.add_phase(
                        Phase(
                            project_id=project.id,
                            stage=stage,
                            name=STAGE_LABELS[stage],
                            phase_number=number,
                        )
                    )
                )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Project code already exists.") from exc

        self.db.refresh(project)
        logger.info("Created project %s with %d phases", project.code, len(phases))
        return project, phases

    def get_project(self, project_id: UUID) -> Project:
        return self._require_project(project_id)

    def list_phases(self, project_id: UUID) -> list[Phase]:
        project = self._require_project(project_id)
        return self.repo.list_phases(project.id)

    def update_project_financials(self, project_id: UUID, data: ProjectFinancialsUpdateData) -> Project:
        project = self._require_project(project_id)
        if data.total_fee is not None:
            self._validate_non_negative(data.total_fee, "total_fee")
            project.total_fee = data.total_fee
        if data.target_profit_margin is not None:
            self._validate_margin(data.target_profit_margin)
            project.target_profit_margin = data.target_profit_margin
        project.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(project)
        return project

    def transition_stage(self, project_id: UUID, stage: ProjectStage, *, allow_backward: bool = False) -> Project:
        project = self._require_project(project_id)
        current = project.project_stage
        if not allow_backward and stage.position < current.position:
            raise ValidationError(
                f"Cannot move project stage backwards from {current.value} to {stage.value} without override."
            )

        project.project_stage = stage
        project.status = ProjectStatus.INACTIVE if stage is ProjectStage.COMPLETION else ProjectStatus.ACTIVE
        project.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(project)
        logger.info("Project %s moved from stage %s to %s", project.code, current.value, stage.value)
        return project

    # ---------- Assignment ledger ----------
    def check_utilization(
        self,
        user_id: UUID,
        *,
        week_start: date | None = None,
        proposed_hours: int = 0,
    ) -> UtilizationResult:
        """Advisory weekly utilization across all of the user's projects."""

        self._require_user(user_id)
        if proposed_hours < 0:
            raise ValidationError("proposed_hours must be greater or equal zero.")
        window = week_window(week_start or date.today())
        active = self.repo.list_active_assignments_for_user(
            user_id,
            week_start=window.start,
            week_end=window.end,
        )
        return evaluate_utilization(window, (row.planned_hours for row in active), proposed_hours)

    def _insert_assignment(self, data: AssignmentCreateData, user: User) -> ResourceAssignment:
        assignment = ResourceAssignment(
            user_id=user.id,
            phase_id=data.phase_id,
            planned_hours=data.planned_hours,
            billing_rate=resolve_hourly_rate(self.compensation_profile(user)),
            start_date=data.start_date,
            end_date=data.end_date,
            created_at=datetime.utcnow(),
        )
        return self.repo.add_assignment(assignment)

    def create_assignment(self, data: AssignmentCreateData) -> AssignmentResult:
        """Book planned hours of a user on a phase.

        The billing rate is snapshotted from the current compensation profile.
        Uniqueness of (user, phase) is left to the storage constraint so that
        concurrent requests resolve to one success and conflicts.
        """

        self._validate_assignment_window(data.planned_hours, data.start_date, data.end_date)
        user = self._require_user(data.user_id)
        self._require_phase(data.phase_id)

        utilization = self.check_utilization(
            user.id,
            week_start=data.start_date,
            proposed_hours=data.planned_hours,
        )

        try:
            assignment = self._insert_assignment(data, user)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Duplicate assignment rejected for user %s on phase %s", data.user_id, data.phase_id)
            raise ConflictError("User is already assigned to this phase.") from exc

        self.db.refresh(assignment)
        if utilization.is_over_utilized:
            logger.warning(
                "User %s over-utilized by %d hours in week of %s",
                user.id,
                utilization.hours_over_limit,
                utilization.week_start.isoformat(),
            )
        logger.info(
            "Assigned user %s to phase %s for %d hours at rate %s",
            user.id,
            data.phase_id,
            assignment.planned_hours,
            assignment.billing_rate,
        )
        return AssignmentResult(assignment=assignment, utilization=utilization)

    def reassign(
        self,
        assignment_id: UUID,
        *,
        planned_hours: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> AssignmentResult:
        """Replace an assignment: the old row is removed and a fresh one with a new rate snapshot created."""

        self._validate_assignment_window(planned_hours, start_date, end_date)
        existing = self._require_assignment(assignment_id)
        user = self._require_user(existing.user_id)
        data = AssignmentCreateData(
            user_id=existing.user_id,
            phase_id=existing.phase_id,
            planned_hours=planned_hours,
            start_date=start_date,
            end_date=end_date,
        )

        try:
            self.repo.delete_assignment(existing)
            utilization = self.check_utilization(
                user.id,
                week_start=start_date,
                proposed_hours=planned_hours,
            )
            assignment = self._insert_assignment(data, user)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("User is already assigned to this phase.") from exc

        self.db.refresh(assignment)
        return AssignmentResult(assignment=assignment, utilization=utilization)

    def delete_assignment(self, assignment_id: UUID) -> None:
        assignment = self._require_assignment(assignment_id)
        self.repo.delete_assignment(assignment)
        self.db.commit()

    def list_project_assignments(self, project_id: UUID) -> list[ResourceAssignment]:
        project = self._require_project(project_id)
        return self.repo.list_assignments_for_project(project.id)

    def list_phase_assignments(self, phase_id: UUID) -> list[ResourceAssignment]:
        phase = self._require_phase(phase_id)
        return self.repo.list_assignments_for_phase(phase.id)

    # ---------- Burn ----------
    def project_burn(self, project: Project) -> BurnSnapshot:
        assignments = self.repo.list_assignments_for_project(project.id)
        return compute_burn_snapshot(
            total_fee=project.total_fee,
            target_profit_margin=project.target_profit_margin,
            lines=[CostLine(billing_rate=row.billing_rate, planned_hours=row.planned_hours) for row in assignments],
        )

    def get_burn_rate(self, project_id: UUID, phase_id: UUID) -> BurnSnapshot:
        """Project-wide burn snapshot, reached through one of the project's phases."""

        project = self._require_project(project_id)
        phase = self._require_phase(phase_id)
        if phase.project_id != project.id:
            raise NotFoundError("Phase not found in project.")
        return self.project_burn(project)

    # ---------- Export ----------
    def export_resource_plan(self, project_id: UUID, *, format_name: str) -> ExportFilePayload:
        normalized_format = format_name.strip().lower()
        if normalized_format not in {"csv", "xlsx"}:
            raise ValidationError("format must be one of: csv, xlsx.")

        project = self._require_project(project_id)
        phases = {phase.id: phase for phase in self.repo.list_phases(project.id)}
        assignments = self.repo.list_assignments_for_project(project.id)
        snapshot = self.project_burn(project)

        fieldnames = [
            "phase_number",
            "phase",
            "user_id",
            "planned_hours",
            "billing_rate",
            "planned_cost",
            "start_date",
            "end_date",
        ]
        rows: list[dict[str, object]] = []
        for assignment in assignments:
            phase = phases[assignment.phase_id]
            rows.append(
                {
                    "phase_number": phase.phase_number,
                    "phase": phase.name,
                    "user_id": str(assignment.user_id),
                    "planned_hours": assignment.planned_hours,
                    "billing_rate": _money(assignment.billing_rate),
                    "planned_cost": _money(assignment.billing_rate * assignment.planned_hours),
                    "start_date": assignment.start_date.isoformat() if assignment.start_date else "",
                    "end_date": assignment.end_date.isoformat() if assignment.end_date else "",
                }
            )
        summary = [
            ("production_budget", _money(snapshot.production_budget)),
            ("current_burn", _money(snapshot.current_burn)),
            ("burn_percentage", _money(snapshot.burn_percentage)),
            ("status", snapshot.status.value),
        ]

        base_filename = f"resource-plan-{project.code}"
        if normalized_format == "csv":
            sio = io.StringIO()
            writer = csv.DictWriter(sio, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)
            return ExportFilePayload(
                media_type="text/csv; charset=utf-8",
                filename=f"{base_filename}.csv",
                content=sio.getvalue().encode("utf-8"),
            )

        # XLSX
        from openpyxl import Workbook

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "assignments"
        sheet.append(fieldnames)
        for row in rows:
            sheet.append([row[column] for column in fieldnames])

        summary_sheet = workbook.create_sheet("burn")
        for key, value in summary:
            summary_sheet.append([key, value])

        output = io.BytesIO()
        workbook.save(output)
        return ExportFilePayload(
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            filename=f"{base_filename}.xlsx",
            content=output.getvalue(),
        )
