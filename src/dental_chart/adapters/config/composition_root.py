from dependency_injector import containers, providers

container = None

def setup_di_container_from_settings(settings, dispatcher=None):
    """Inicializa o DI container do odontograma após o Django já estar com settings carregados."""
    global container  # noqa: PLW0603
    if container is not None:
        import structlog
        structlog.get_logger().debug("DI container de odontograma já inicializado.")
        return container

    import structlog
    from django.conf import settings as dj_settings

    from odonto_core.adapters.storage.transaction_runner import TransactionRunner
    from odonto_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from odonto_core.core.domain.services.event_dispatcher import EventDispatcher

    from dental_chart.adapters.repositories.dental_chart_repo_impl import DentalChartRepoImpl
    from dental_chart.core.application.commands.chart_commands import ApplyChartUpdateCommand
    from dental_chart.core.application.handlers.chart_handlers import ApplyChartUpdateHandler, GetChartHandler
    from dental_chart.core.application.queries.chart_queries import GetChartQuery
    from dental_chart.core.application.services.chart_transaction_manager import ChartTransactionManager
    from dental_chart.core.domain.services.tooth_numbering import ToothNumbering

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
        numbering = providers.Singleton(ToothNumbering, scheme=config.tooth_numbering)

        # Repositórios & serviços
        dental_chart_repo = providers.Singleton(DentalChartRepoImpl)
        chart_manager = providers.Singleton(
            ChartTransactionManager,
            repo=dental_chart_repo,
            runner=transaction_runner,
            dispatcher=event_dispatcher,
            numbering=numbering,
        )

        # Handlers
        apply_chart_update_handler = providers.Factory(ApplyChartUpdateHandler, manager=chart_manager, logger=logger)
        get_chart_handler = providers.Factory(GetChartHandler, manager=chart_manager)

        def init(self):
            self.command_bus().register(ApplyChartUpdateCommand, self.apply_chart_update_handler())
            self.query_bus().register(GetChartQuery, self.get_chart_handler())

    # ------- INSTANCIAÇÃO E CONFIG -------
    container = Container()
    if dispatcher is not None:
        container.event_dispatcher.override(providers.Object(dispatcher))
    container.config.db_alias.from_value(getattr(settings, "STORAGE_DB_ALIAS", "default"))
    container.config.max_attempts.from_value(getattr(settings, "STORAGE_MAX_ATTEMPTS", 3))
    container.config.backoff_base.from_value(getattr(settings, "STORAGE_BACKOFF_BASE", 0.05))
    container.config.tooth_numbering.from_value(getattr(settings, "CHART_TOOTH_NUMBERING", "universal"))

    Container.init(container)
    return container
