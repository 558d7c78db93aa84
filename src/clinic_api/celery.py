import os

from celery import Celery
from celery.signals import setup_logging

# Define o módulo de configurações do Django para o Celery.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("clinic_api")

# Toda configuração do Celery vem do settings com prefixo CELERY_.
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


@setup_logging.connect
def _configure_worker_logging(**_kwargs):
    """Impede o Celery de sobrescrever o logging; usa o mesmo structlog do Django."""
    from config.structlog_config import configure_logging

    configure_logging()
