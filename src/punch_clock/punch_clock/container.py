from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .adjustments.mysql_adjustment_repository import MySQLAdjustmentRepository
from .adjustments.repository import AdjustmentRepository
from .adjustments.service import AdjustmentWorkflow
from .common.datetime_utils import now_local
from .core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_TOKEN_MAX_AGE
from .database.connection import DBConfig, DatabaseConnection
from .hours.service import HoursReportService
from .identity.service import SignedTokenIdentityService
from .punches.mysql_punch_repository import MySQLPunchRepository
from .punches.repository import PunchRepository
from .punches.service import PunchLedger
from .subjects.mysql_subject_repository import MySQLSubjectRepository
from .subjects.repository import SubjectRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    subjects_repo: SubjectRepository
    punches_repo: PunchRepository
    adjustments_repo: AdjustmentRepository

    identity: SignedTokenIdentityService
    punch_ledger: PunchLedger
    adjustment_workflow: AdjustmentWorkflow
    hours_report_service: HoursReportService

    clock: Callable[[], datetime] = now_local
    history_limit: int = DEFAULT_HISTORY_LIMIT


def wire_container(
    *,
    subjects_repo: SubjectRepository,
    punches_repo: PunchRepository,
    adjustments_repo: AdjustmentRepository,
    secret_key: str,
    conn: Optional[DatabaseConnection] = None,
    token_max_age: int = DEFAULT_TOKEN_MAX_AGE,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    """Assemble services over any repository implementation."""

    identity = SignedTokenIdentityService(secret_key, max_age=token_max_age, subjects=subjects_repo)
    punch_ledger = PunchLedger(punches_repo, clock=clock)
    adjustment_workflow = AdjustmentWorkflow(adjustments_repo, punches_repo, subjects_repo, clock=clock)
    hours_report_service = HoursReportService(punch_ledger, adjustment_workflow)

    return Container(
        conn=conn,
        subjects_repo=subjects_repo,
        punches_repo=punches_repo,
        adjustments_repo=adjustments_repo,
        identity=identity,
        punch_ledger=punch_ledger,
        adjustment_workflow=adjustment_workflow,
        hours_report_service=hours_report_service,
        clock=clock,
        history_limit=int(history_limit),
    )


def build_container(
    *,
    db_config: dict,
    secret_key: str,
    token_max_age: int = DEFAULT_TOKEN_MAX_AGE,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire_container(
        conn=conn,
        subjects_repo=MySQLSubjectRepository(conn),
        punches_repo=MySQLPunchRepository(conn),
        adjustments_repo=MySQLAdjustmentRepository(conn),
        secret_key=secret_key,
        token_max_age=token_max_age,
        history_limit=history_limit,
    )
