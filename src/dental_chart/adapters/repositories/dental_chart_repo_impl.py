from __future__ import annotations

import uuid
from uuid import UUID

from django.db.models import Max, Prefetch

from odonto_core.adapters.storage.transaction_runner import TransactionHandle
from odonto_core.core.domain.events.exceptions import NotFoundError
from plugins.django_interface.models import DentalChart, ToothProcedure, Visit

from dental_chart.core.application.dtos.chart_dtos import ToothProcedureDTO
from dental_chart.core.domain.entities.dental_chart_entity import DentalChartEntryEntity, ToothProcedureEntity
from dental_chart.core.domain.repositories.dental_chart_repository import DentalChartRepository


class DentalChartRepoImpl(DentalChartRepository):
    """
    Persistência do odontograma por visita.
    Procedimentos são somente-acréscimo: correções geram novas linhas.
    """

    # ───────────────────────── MÉTODOS DE PERSISTÊNCIA ──────────────────────────

    def lock_visit(self, tx: TransactionHandle, visit_id: UUID) -> None:
        found = Visit.objects.using(tx.alias).select_for_update().filter(id=visit_id).values_list("id", flat=True)
        if not list(found):
            raise NotFoundError("Visit", visit_id)

    def upsert_entry(
        self,
        tx: TransactionHandle,
        *,
        visit_id: UUID,
        tooth_number: int,
        tooth_name: str | None,
        status: str,
        notes: str | None,
    ) -> DentalChartEntryEntity:
        defaults = {"current_status": status, "tooth_name": tooth_name}
        if notes is not None:
            defaults["notes"] = notes
        model, _created = DentalChart.objects.using(tx.alias).update_or_create(
            visit_id=visit_id,
            tooth_number=tooth_number,
            defaults=defaults,
        )
        procedures = [
            ToothProcedureEntity.from_model(p)
            for p in ToothProcedure.objects.using(tx.alias).filter(dental_chart=model).order_by("sequence")
        ]
        return DentalChartEntryEntity.from_model(model, procedures=procedures)

    def append_procedure(
        self, tx: TransactionHandle, chart_entry_id: UUID, procedure: ToothProcedureDTO
    ) -> ToothProcedureEntity:
        last = (
            ToothProcedure.objects.using(tx.alias)
            .filter(dental_chart_id=chart_entry_id)
            .aggregate(last=Max("sequence"))["last"]
        )
        model = ToothProcedure(
            id=uuid.uuid4(),
            dental_chart_id=chart_entry_id,
            sequence=(last or 0) + 1,
            procedure_name=procedure.procedure_name,
            procedure_date=procedure.procedure_date,
            cost=procedure.cost,
            insurance_covered=procedure.insurance_covered,
            notes=procedure.notes,
        )
        model.save(using=tx.alias, force_insert=True)
        return ToothProcedureEntity.from_model(model)

    # ────────────────────────── MÉTODOS DE CONSULTA ───────────────────────────

    def get_chart(self, visit_id: UUID) -> list[DentalChartEntryEntity]:
        qs = (
            DentalChart.objects.filter(visit_id=visit_id)
            .order_by("tooth_number")
            .prefetch_related(Prefetch("procedures", queryset=ToothProcedure.objects.order_by("sequence")))
        )
        return [
            DentalChartEntryEntity.from_model(
                m, procedures=[ToothProcedureEntity.from_model(p) for p in m.procedures.all()]
            )
            for m in qs
        ]
