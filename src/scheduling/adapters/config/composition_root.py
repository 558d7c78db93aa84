from dependency_injector import containers, providers

container = None

def setup_di_container_from_settings(settings, dispatcher=None):
    """Inicializa o DI container da agenda após o Django já estar com settings carregados."""
    global container  # noqa: PLW0603
    if container is not None:
        import structlog
        structlog.get_logger().debug("DI container de agenda já inicializado.")
        return container

    import structlog
    from django.conf import settings as dj_settings

    from odonto_core.adapters.storage.transaction_runner import TransactionRunner
    from odonto_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from odonto_core.core.domain.events.events import AppointmentBookedEvent
    from odonto_core.core.domain.services.event_dispatcher import EventDispatcher

    from scheduling.adapters.notifiers.reminder_dispatcher import CeleryReminderDispatcher
    from scheduling.adapters.repositories.appointment_repo_impl import AppointmentRepoImpl
    from scheduling.adapters.repositories.visit_repo_impl import VisitRepoImpl
    from scheduling.core.application.commands.appointment_commands import (
        ProposeAppointmentCommand,
        TransitionAppointmentCommand,
    )
    from scheduling.core.application.handlers.appointment_handlers import (
        ListAppointmentsHandler,
        ProposeAppointmentHandler,
        TransitionAppointmentHandler,
    )
    from scheduling.core.application.queries.appointment_queries import ListAppointmentsQuery
    from scheduling.core.application.services.scheduler_service import Scheduler

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
        reminder_dispatcher = providers.Singleton(CeleryReminderDispatcher)

        # Repositórios
        appointment_repo = providers.Singleton(AppointmentRepoImpl)
        visit_repo = providers.Singleton(VisitRepoImpl)

        # Serviços
        scheduler = providers.Singleton(
            Scheduler,
            repo=appointment_repo,
            visit_creator=visit_repo,
            runner=transaction_runner,
            dispatcher=event_dispatcher,
        )

        # Handlers
        propose_appointment_handler = providers.Factory(ProposeAppointmentHandler, scheduler=scheduler)
        transition_appointment_handler = providers.Factory(
            TransitionAppointmentHandler, scheduler=scheduler, logger=logger
        )
        list_appointments_handler = providers.Factory(ListAppointmentsHandler, scheduler=scheduler)

        def init(self):
            bus = self.command_bus()
            bus.register(ProposeAppointmentCommand, self.propose_appointment_handler())
            bus.register(TransitionAppointmentCommand, self.transition_appointment_handler())

            qb = self.query_bus()
            qb.register(ListAppointmentsQuery, self.list_appointments_handler())

            self.event_dispatcher().subscribe(AppointmentBookedEvent, self.reminder_dispatcher())

    # ------- INSTANCIAÇÃO E CONFIG -------
    container = Container()
    if dispatcher is not None:
        container.event_dispatcher.override(providers.Object(dispatcher))
    container.config.db_alias.from_value(getattr(settings, "STORAGE_DB_ALIAS", "default"))
    container.config.max_attempts.from_value(getattr(settings, "STORAGE_MAX_ATTEMPTS", 3))
    container.config.backoff_base.from_value(getattr(settings, "STORAGE_BACKOFF_BASE", 0.05))

    Container.init(container)
    return container
