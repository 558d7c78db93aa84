from dependency_injector import containers, providers

container = None

def setup_di_container_from_settings(settings, dispatcher=None):
    """Inicializa o DI container do ledger após o Django já estar com settings carregados."""
    global container  # noqa: PLW0603
    if container is not None:
        import structlog
        structlog.get_logger().debug("DI container de ledger já inicializado.")
        return container

    import structlog
    from django.conf import settings as dj_settings

    from odonto_core.adapters.storage.transaction_runner import TransactionRunner
    from odonto_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from odonto_core.core.domain.services.event_dispatcher import EventDispatcher

    from ledger.adapters.repositories.insurance_policy_repo_impl import InsurancePolicyRepoImpl
    from ledger.adapters.repositories.invoice_repo_impl import InvoiceRepoImpl
    from ledger.adapters.repositories.payment_repo_impl import PaymentRepoImpl
    from ledger.adapters.repositories.procedure_catalog_impl import ProcedureCatalogImpl
    from ledger.core.application.commands.invoice_commands import (
        ApplyPaymentCommand,
        GenerateInvoiceCommand,
        MarkOverdueCommand,
        SweepOverdueCommand,
    )
    from ledger.core.application.handlers.invoice_handlers import (
        ApplyPaymentHandler,
        GenerateInvoiceHandler,
        GetInvoiceHandler,
        ListInvoicesHandler,
        MarkOverdueHandler,
        SweepOverdueHandler,
    )
    from ledger.core.application.queries.invoice_queries import GetInvoiceQuery, ListInvoicesQuery
    from ledger.core.application.services.ledger_engine import LedgerEngine

    settings = settings or dj_settings

    # ------- DECLARAÇÃO DO CONTAINER -------
    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()

        logger = providers.Singleton(structlog.get_logger)
        event_dispatcher = providers.Singleton(EventDispatcher)

        # CQRS
        command_bus = providers.Singleton(CommandBusImpl, dispatcher=event_dispatcher)
        query_bus = providers.Singleton(QueryBusImpl)

        # Infra
        transaction_runner = providers.Singleton(
            TransactionRunner,
            alias=config.db_alias,
            max_attempts=config.max_attempts,
            backoff_base=config.backoff_base,
        )

        # Repositórios
        invoice_repo = providers.Singleton(InvoiceRepoImpl)
        payment_repo = providers.Singleton(PaymentRepoImpl)
        policy_lookup = providers.Singleton(InsurancePolicyRepoImpl)
        procedure_catalog = providers.Singleton(ProcedureCatalogImpl)

        # Serviço
        ledger_engine = providers.Singleton(
            LedgerEngine,
            invoices=invoice_repo,
            payments=payment_repo,
            policies=policy_lookup,
            catalog=procedure_catalog,
            runner=transaction_runner,
            dispatcher=event_dispatcher,
            default_tax_rate=config.default_tax_rate,
            due_days=config.due_days,
            strict_overpayment=config.strict_overpayment,
        )

        # Handlers
        generate_invoice_handler = providers.Factory(GenerateInvoiceHandler, engine=ledger_engine)
        apply_payment_handler = providers.Factory(ApplyPaymentHandler, engine=ledger_engine, logger=logger)
        mark_overdue_handler = providers.Factory(MarkOverdueHandler, engine=ledger_engine)
        sweep_overdue_handler = providers.Factory(SweepOverdueHandler, engine=ledger_engine)
        get_invoice_handler = providers.Factory(GetInvoiceHandler, engine=ledger_engine)
        list_invoices_handler = providers.Factory(ListInvoicesHandler, engine=ledger_engine)

        def init(self):
            self.command_bus().register(GenerateInvoiceCommand, self.generate_invoice_handler())
            self.command_bus().register(ApplyPaymentCommand, self.apply_payment_handler())
            self.command_bus().register(MarkOverdueCommand, self.mark_overdue_handler())
            self.command_bus().register(SweepOverdueCommand, self.sweep_overdue_handler())
            self.query_bus().register(GetInvoiceQuery, self.get_invoice_handler())
            self.query_bus().register(ListInvoicesQuery, self.list_invoices_handler())

    # ------- INSTANCIAÇÃO E CONFIG -------
    container = Container()
    if dispatcher is not None:
        container.event_dispatcher.override(providers.Object(dispatcher))
    container.config.db_alias.from_value(getattr(settings, "STORAGE_DB_ALIAS", "default"))
    container.config.max_attempts.from_value(getattr(settings, "STORAGE_MAX_ATTEMPTS", 3))
    container.config.backoff_base.from_value(getattr(settings, "STORAGE_BACKOFF_BASE", 0.05))
    container.config.default_tax_rate.from_value(str(getattr(settings, "LEDGER_DEFAULT_TAX_RATE", "0.08")))
    container.config.due_days.from_value(getattr(settings, "LEDGER_INVOICE_DUE_DAYS", 30))
    container.config.strict_overpayment.from_value(getattr(settings, "LEDGER_STRICT_OVERPAYMENT", False))

    Container.init(container)
    return container
