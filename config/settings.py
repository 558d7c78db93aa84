from pathlib import Path

from celery.schedules import crontab
from decouple import Csv, config

# -------------------------------
# Diretórios base
# -------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# -------------------------------
# Segurança e debug
# -------------------------------
SECRET_KEY = config('SECRET_KEY', default='dev-insecure-key')
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

# -------------------------------
# Logging (structlog)
# -------------------------------
LOG_LEVEL = config('LOG_LEVEL', default='INFO')
JSON_LOGS = config('JSON_LOGS', default=False, cast=bool)
LOGGING_CONFIG = None  # configure_logging() é chamado em manage.py / celery

# -------------------------------
# Celery
# -------------------------------
CELERY_BROKER_URL                 = config('CELERY_BROKER_URL', default='memory://')
CELERY_RESULT_BACKEND             = config('CELERY_RESULT_BACKEND', default='cache+memory://')
CELERY_TASK_ACKS_LATE             = True
CELERY_TASK_REJECT_ON_WORKER_LOST = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_TASK_ALWAYS_EAGER          = config('CELERY_TASK_ALWAYS_EAGER', default=False, cast=bool)
CELERY_ACCEPT_CONTENT             = ["json"]
CELERY_TASK_SERIALIZER            = "json"
CELERY_TASK_QUEUES = {
    "default":     {"exchange": "default",     "routing_key": "default"},
    "dead_letter": {"exchange": "dead_letter", "routing_key": "dead_letter"},
    "reminders":   {"exchange": "reminders",   "routing_key": "reminders"},
    "ledger":      {"exchange": "ledger",      "routing_key": "ledger"},
}
CELERY_TASK_DEFAULT_QUEUE = 'default'
CELERY_TASK_DEFAULT_EXCHANGE = 'default'
CELERY_TASK_DEFAULT_ROUTING_KEY = 'default'

CELERY_BEAT_SCHEDULE = {
    # Marca como vencidas as faturas com vencimento ultrapassado, todo dia às 1h.
    'sweep-overdue-invoices-daily': {
        'task': 'clinic_api.tasks.sweep_overdue_invoices',
        'schedule': crontab(minute=0, hour=1),
    },
}

# -------------------------------
# Armazenamento / transações
# -------------------------------
STORAGE_DB_ALIAS     = 'default'
STORAGE_MAX_ATTEMPTS = config('STORAGE_MAX_ATTEMPTS', default=3, cast=int)
STORAGE_BACKOFF_BASE = config('STORAGE_BACKOFF_BASE', default=0.05, cast=float)
SQLITE_TIMEOUT       = config('SQLITE_TIMEOUT', default=5, cast=float)

# -------------------------------
# Odontograma / Ledger
# -------------------------------
CHART_TOOTH_NUMBERING     = config('CHART_TOOTH_NUMBERING', default='universal')
LEDGER_DEFAULT_TAX_RATE   = config('LEDGER_DEFAULT_TAX_RATE', default='0.08')
LEDGER_STRICT_OVERPAYMENT = config('LEDGER_STRICT_OVERPAYMENT', default=False, cast=bool)
LEDGER_INVOICE_DUE_DAYS   = config('LEDGER_INVOICE_DUE_DAYS', default=30, cast=int)

# -------------------------------
# Apps
# -------------------------------
INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'plugins.django_interface.apps.DjangoInterfaceConfig',
    'clinic_api.apps.ClinicApiConfig',
]

MIDDLEWARE = []

# -------------------------------
# Banco de Dados
# -------------------------------
DB_ENGINE = config('DB_ENGINE', default='sqlite')

if DB_ENGINE == 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE':   'django.db.backends.postgresql',
            'NAME':     config('DB_NAME'),
            'USER':     config('DB_USER'),
            'PASSWORD': config('DB_PASS'),
            'HOST':     config('DB_HOST'),
            'PORT':     config('DB_PORT', default='5432'),
        }
    }
else:
    # Escritas serializadas: BEGIN IMMEDIATE + WAL
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME':   config('DB_NAME', default=str(BASE_DIR / 'clinic.sqlite3')),
            'OPTIONS': {
                'transaction_mode': 'IMMEDIATE',
                'timeout': SQLITE_TIMEOUT,
                'init_command': 'PRAGMA journal_mode=WAL;',
            },
            # banco de teste em arquivo: conexões de threads distintas enxergam as mesmas tabelas
            'TEST': {'NAME': str(BASE_DIR / 'test_clinic.sqlite3')},
        }
    }

# -------------------------------
# Internacionalização
# -------------------------------
LANGUAGE_CODE = 'pt-br'
TIME_ZONE     = 'America/Sao_Paulo'
USE_I18N      = True
USE_TZ        = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
