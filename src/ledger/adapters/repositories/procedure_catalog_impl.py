from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from odonto_core.core.domain.events.exceptions import NotFoundError
from plugins.django_interface.models import Procedure

from ledger.core.domain.repositories.procedure_catalog import ProcedureCatalog


class ProcedureCatalogImpl(ProcedureCatalog):
    def base_costs(self, procedure_ids: Iterable[UUID]) -> dict[UUID, Decimal]:
        wanted = set(procedure_ids)
        if not wanted:
            return {}
        costs = dict(
            Procedure.objects.filter(id__in=wanted, is_active=True).values_list("id", "base_cost")
        )
        missing = wanted - costs.keys()
        if missing:
            raise NotFoundError("Procedure", sorted(str(m) for m in missing)[0])
        return costs
