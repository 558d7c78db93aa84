from django.apps import AppConfig


class ClinicApiConfig(AppConfig):
    name = "clinic_api"
    verbose_name = "Clinic Scheduling & Ledger Core"

    def ready(self):
        from django.conf import settings

        from odonto_core.core.domain.services.event_dispatcher import EventDispatcher

        # ─── DI containers ──────────────────────────────────────────
        from dental_chart.adapters.config.composition_root import (
            setup_di_container_from_settings as build_chart_container,
        )
        from ledger.adapters.config.composition_root import (
            setup_di_container_from_settings as build_ledger_container,
        )
        from scheduling.adapters.config.composition_root import (
            setup_di_container_from_settings as build_scheduling_container,
        )

        # um único dispatcher: eventos de um contexto chegam aos assinantes dos outros
        dispatcher = EventDispatcher()
        build_scheduling_container(settings, dispatcher=dispatcher)
        build_chart_container(settings, dispatcher=dispatcher)
        build_ledger_container(settings, dispatcher=dispatcher)
