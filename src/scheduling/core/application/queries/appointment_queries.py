from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal
from uuid import UUID

from odonto_core.core.application.cqrs import PaginatedQueryDTO


@dataclass(frozen=True, slots=True)
class AppointmentFilter:
    """
    Filtros reconhecidos para listagem de agendamentos.
    Cada campo vira um parâmetro de consulta; nada é concatenado em SQL.
    """
    staff_id: UUID | None = None
    patient_id: UUID | None = None
    statuses: tuple[str, ...] = ()
    starts_from: datetime | None = None
    starts_before: datetime | None = None
    order_by: Literal["start_at", "-start_at"] = "start_at"


@dataclass(frozen=True, slots=True)
class ListAppointmentsQuery(PaginatedQueryDTO):
    """Lista agendamentos com paginação."""
    filtros: AppointmentFilter
    page: int = 1
    page_size: int = 50
