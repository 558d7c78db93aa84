from dataclasses import dataclass
from uuid import UUID

from odonto_core.core.application.cqrs import QueryDTO


@dataclass(frozen=True, slots=True)
class GetChartQuery(QueryDTO):
    """Odontograma de uma visita."""
    visit_id: UUID
    filtros: dict
