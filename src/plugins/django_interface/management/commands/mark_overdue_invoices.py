from __future__ import annotations

from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ledger.adapters.config.composition_root import (
    setup_di_container_from_settings as setup_ledger_container,
)
from ledger.core.application.commands.invoice_commands import SweepOverdueCommand


class Command(BaseCommand):
    """
    Marca como vencidas as faturas cujo vencimento já passou.
    É idempotente e seguro para ser executado diariamente.
    """
    help = "Marca como 'overdue' as faturas não pagas com vencimento anterior à data de referência."

    def add_arguments(self, parser):
        parser.add_argument(
            "--as-of",
            type=str,
            help="Data de referência YYYY-MM-DD (default: hoje).",
        )

    def handle(self, *args, **options):
        raw = options.get("as_of")
        try:
            as_of = date.fromisoformat(raw) if raw else timezone.localdate()
        except ValueError as exc:
            raise CommandError(f"Data inválida: {raw}") from exc

        container = setup_ledger_container(None)
        marked = container.command_bus().dispatch(SweepOverdueCommand(as_of=as_of))
        self.stdout.write(self.style.SUCCESS(f"✔️  {marked} fatura(s) marcada(s) como vencida(s) em {as_of}."))
