from __future__ import annotations

from odonto_core.core.application.cqrs import CommandHandler, QueryHandler

from dental_chart.core.application.services.chart_transaction_manager import ChartTransactionManager
from dental_chart.core.domain.entities.dental_chart_entity import DentalChartEntryEntity

from ..commands.chart_commands import ApplyChartUpdateCommand
from ..queries.chart_queries import GetChartQuery


class ApplyChartUpdateHandler(CommandHandler[ApplyChartUpdateCommand]):
    def __init__(self, manager: ChartTransactionManager, logger):
        self.manager = manager
        self.logger = logger

    def handle(self, cmd: ApplyChartUpdateCommand) -> list[DentalChartEntryEntity]:
        entries = self.manager.apply_chart_update(cmd.visit_id, list(cmd.entries))
        self.logger.info(
            "chart.update_audit",
            visit_id=str(cmd.visit_id),
            entries=len(entries),
            user_id=str(cmd.user_id) if cmd.user_id else None,
        )
        return entries


class GetChartHandler(QueryHandler[GetChartQuery, list[DentalChartEntryEntity]]):
    def __init__(self, manager: ChartTransactionManager):
        self.manager = manager

    def handle(self, q: GetChartQuery) -> list[DentalChartEntryEntity]:
        return self.manager.get_chart(q.visit_id)
