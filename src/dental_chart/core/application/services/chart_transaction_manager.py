from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from odonto_core.adapters.storage.transaction_runner import TransactionHandle, TransactionRunner
from odonto_core.core.domain.events.events import ChartUpdatedEvent
from odonto_core.core.domain.events.exceptions import ValidationError
from odonto_core.core.domain.services.event_dispatcher import EventDispatcher

from dental_chart.core.application.dtos.chart_dtos import ToothUpdateDTO
from dental_chart.core.domain.entities.dental_chart_entity import DentalChartEntryEntity
from dental_chart.core.domain.repositories.dental_chart_repository import DentalChartRepository
from dental_chart.core.domain.services.tooth_numbering import ToothNumbering

logger = structlog.get_logger(__name__)


class ChartTransactionManager:
    """
    Aplica o lote de atualizações por dente de uma visita como unidade
    tudo-ou-nada. Toda a validação acontece antes de abrir a transação.
    """

    def __init__(
        self,
        repo: DentalChartRepository,
        runner: TransactionRunner,
        dispatcher: EventDispatcher,
        numbering: ToothNumbering,
    ) -> None:
        self.repo = repo
        self.runner = runner
        self.dispatcher = dispatcher
        self.numbering = numbering

    def apply_chart_update(
        self,
        visit_id: UUID,
        entries: Sequence[ToothUpdateDTO | Mapping[str, Any]],
    ) -> list[DentalChartEntryEntity]:
        updates = self._validate(visit_id, entries)

        def _apply(tx: TransactionHandle) -> list[DentalChartEntryEntity]:
            self.repo.lock_visit(tx, visit_id)
            applied: list[DentalChartEntryEntity] = []
            for upd in updates:
                entry = self.repo.upsert_entry(
                    tx,
                    visit_id=visit_id,
                    tooth_number=upd.tooth_number,
                    tooth_name=self._tooth_name(upd.tooth_number),
                    status=upd.status,
                    notes=upd.notes,
                )
                for proc in upd.procedures:
                    entry.procedures.append(self.repo.append_procedure(tx, entry.id, proc))
                applied.append(entry)

            event = ChartUpdatedEvent(
                visit_id=visit_id,
                tooth_numbers=tuple(u.tooth_number for u in updates),
                procedures_added=sum(len(u.procedures) for u in updates),
            )
            tx.on_commit(lambda: self.dispatcher.dispatch(event))
            return applied

        applied = self.runner.run("chart.apply_update", _apply)
        logger.info(
            "chart.update_applied",
            visit_id=str(visit_id),
            teeth=[e.tooth_number for e in applied],
            procedures=sum(len(u.procedures) for u in updates),
        )
        return applied

    def get_chart(self, visit_id: UUID) -> list[DentalChartEntryEntity]:
        return self.repo.get_chart(visit_id)

    # ------------------------------------------------ helpers
    def _validate(self, visit_id, entries) -> list[ToothUpdateDTO]:
        if not visit_id:
            raise ValidationError("visit_id é obrigatório", field="visit_id")
        if not entries:
            raise ValidationError("Lote de atualização vazio", field="entries")

        updates: list[ToothUpdateDTO] = []
        for idx, raw in enumerate(entries):
            try:
                upd = raw if isinstance(raw, ToothUpdateDTO) else ToothUpdateDTO.model_validate(raw)
            except PydanticValidationError as exc:
                raise ValidationError(f"Entrada {idx} inválida: {exc.errors()}", index=idx) from exc
            self.numbering.validate(upd.tooth_number)
            updates.append(upd)

        seen: set[int] = set()
        for upd in updates:
            if upd.tooth_number in seen:
                raise ValidationError(f"Dente {upd.tooth_number} repetido no lote", tooth_number=upd.tooth_number)
            seen.add(upd.tooth_number)
        return updates

    def _tooth_name(self, number: int) -> str:
        return self.numbering.name(number)
