from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID


class ProcedureCatalog(ABC):
    @abstractmethod
    def base_costs(self, procedure_ids: Iterable[UUID]) -> dict[UUID, Decimal]:
        """Preço base dos procedimentos ativos; NotFoundError para ids ausentes."""
        ...
