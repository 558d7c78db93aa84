from dataclasses import dataclass
from typing import Any
from uuid import UUID

from odonto_core.core.application.cqrs import CommandDTO


@dataclass(frozen=True, slots=True)
class ApplyChartUpdateCommand(CommandDTO):
    """Lote de atualizações de dentes de uma visita (ToothUpdateDTO ou dicts)."""
    visit_id: UUID
    entries: tuple[Any, ...]
    user_id: UUID | None = None  # para auditoria opcional
