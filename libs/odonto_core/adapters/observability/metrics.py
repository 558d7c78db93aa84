from prometheus_client import Counter, Histogram

COMMAND_COUNT = Counter(
    "clinic_command_total",
    "Comandos executados no núcleo",
    ["command", "success"],
)

COMMAND_DURATION = Histogram(
    "clinic_command_duration_seconds",
    "Duração dos comandos do núcleo",
    ["command"],
)

STORAGE_RETRIES = Counter(
    "clinic_storage_retry_total",
    "Retentativas por contenção de transação",
    ["operation"],
)

STORAGE_BUSY = Counter(
    "clinic_storage_busy_total",
    "Operações que esgotaram as retentativas",
    ["operation"],
)

SCHEDULING_CONFLICTS = Counter(
    "clinic_scheduling_conflict_total",
    "Propostas de agendamento rejeitadas por sobreposição",
)

PAYMENTS_APPLIED = Counter(
    "clinic_payment_applied_total",
    "Pagamentos registrados no ledger",
    ["method"],
)

INVOICES_OVERDUE = Counter(
    "clinic_invoice_overdue_total",
    "Faturas marcadas como vencidas",
)
