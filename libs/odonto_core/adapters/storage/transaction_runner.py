"""
Primitiva de transação de armazenamento.

Cada operação do núcleo que lê-e-escreve linhas relacionadas recebe um
`TransactionHandle` explícito, válido apenas durante o bloco atômico.
Contenção transitória é retentada com backoff exponencial; o restante
das falhas de banco vira `StorageError` após o rollback completo.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import backoff
import structlog
from django.db import DatabaseError, OperationalError, transaction

from odonto_core.adapters.observability.metrics import STORAGE_BUSY, STORAGE_RETRIES
from odonto_core.core.domain.events.exceptions import Busy, StorageError

logger = structlog.get_logger(__name__)

R = TypeVar("R")

# SQLSTATE de falhas de serialização / deadlock no PostgreSQL
_PG_RETRYABLE = {"40001", "40P01"}
_SQLITE_RETRYABLE = ("database is locked", "database table is locked", "database is busy")


class _TransientConflict(Exception):
    """Sinaliza contenção que vale uma nova tentativa da operação inteira."""

    def __init__(self, original: DatabaseError) -> None:
        super().__init__(str(original))
        self.original = original


def is_transient(exc: DatabaseError) -> bool:
    cause = exc.__cause__ or exc
    pgcode = getattr(cause, "pgcode", None) or getattr(cause, "sqlstate", None)
    if pgcode in _PG_RETRYABLE:
        return True
    if isinstance(exc, OperationalError):
        msg = str(exc).lower()
        return any(token in msg for token in _SQLITE_RETRYABLE)
    return False


@dataclass
class TransactionHandle:
    """Handle da transação corrente, repassado aos repositórios."""
    alias: str
    operation: str
    attempt: int = 1

    def on_commit(self, fn: Callable[[], None]) -> None:
        """Agenda `fn` para depois do commit; descartado em caso de rollback."""
        transaction.on_commit(fn, using=self.alias)


class TransactionRunner:
    """
    Executa unidades de trabalho em `transaction.atomic`.

    - Contenção transitória → até `max_attempts` tentativas, então `Busy`.
    - Outras `DatabaseError` → `StorageError` (estado inalterado).
    - Erros de domínio atravessam o bloco (provocando rollback) sem mudança.
    """

    def __init__(self, alias: str = "default", max_attempts: int = 3, backoff_base: float = 0.05) -> None:
        self.alias = alias
        self.max_attempts = max(1, int(max_attempts))
        self.backoff_base = backoff_base

    def run(self, operation: str, fn: Callable[[TransactionHandle], R]) -> R:
        attempts = {"n": 0}

        def _on_backoff(details: dict[str, Any]) -> None:
            STORAGE_RETRIES.labels(operation).inc()
            logger.warning(
                "storage.retry",
                operation=operation,
                attempt=details["tries"],
                wait=round(details["wait"], 3),
                error=str(details["exception"]),
            )

        @backoff.on_exception(
            backoff.expo,
            _TransientConflict,
            max_tries=self.max_attempts,
            factor=self.backoff_base,
            jitter=None,
            on_backoff=_on_backoff,
        )
        def _attempt() -> R:
            attempts["n"] += 1
            handle = TransactionHandle(alias=self.alias, operation=operation, attempt=attempts["n"])
            try:
                with transaction.atomic(using=self.alias):
                    return fn(handle)
            except DatabaseError as exc:
                if is_transient(exc):
                    raise _TransientConflict(exc) from exc
                logger.error("storage.rollback", operation=operation, error=str(exc))
                raise StorageError(f"Transação '{operation}' revertida: {exc}", operation=operation) from exc

        try:
            return _attempt()
        except _TransientConflict as exc:
            STORAGE_BUSY.labels(operation).inc()
            logger.error("storage.busy", operation=operation, attempts=attempts["n"], error=str(exc))
            raise Busy(
                f"Operação '{operation}' abortada após {attempts['n']} tentativas",
                operation=operation,
                attempts=attempts["n"],
            ) from exc.original
