from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID


class ClinicCoreError(Exception):
    """Classe base para todas as falhas tipadas do núcleo."""
    code = "core_error"

    def __init__(self, message: str = "", **context) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message
        self.context = context


class ValidationError(ClinicCoreError):
    """
    Entrada malformada. Sempre detectada ANTES de qualquer escrita no banco.
    """
    code = "validation_error"


class InvalidToothNumber(ValidationError):
    """Número de dente fora do esquema de numeração configurado."""
    code = "invalid_tooth_number"

    def __init__(self, tooth_number: int, scheme: str) -> None:
        super().__init__(
            f"Dente {tooth_number} inválido para o esquema '{scheme}'",
            tooth_number=tooth_number,
            scheme=scheme,
        )
        self.tooth_number = tooth_number
        self.scheme = scheme


class NotFoundError(ClinicCoreError):
    """Registro referenciado não existe."""
    code = "not_found"

    def __init__(self, entity: str, entity_id) -> None:
        super().__init__(f"{entity} {entity_id} não encontrado", entity=entity, entity_id=str(entity_id))
        self.entity = entity
        self.entity_id = entity_id


class SchedulingConflict(ClinicCoreError):
    """Agendamento sobrepõe outro(s) do mesmo profissional."""
    code = "scheduling_conflict"

    def __init__(self, staff_id, conflicting_ids: Iterable[UUID]) -> None:
        self.staff_id = staff_id
        self.conflicting_ids = tuple(conflicting_ids)
        super().__init__(
            f"Horário indisponível para o profissional {staff_id}",
            staff_id=str(staff_id),
            conflicting_ids=[str(i) for i in self.conflicting_ids],
        )


class InvalidTransition(ClinicCoreError):
    """Mudança de status não permitida pela máquina de estados."""
    code = "invalid_transition"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Transição inválida: {current} → {requested}",
            current=current,
            requested=requested,
        )
        self.current = current
        self.requested = requested


class StorageError(ClinicCoreError):
    """
    Transação abortada e revertida. Nenhum efeito parcial fica visível.
    """
    code = "storage_error"


class OverpaymentError(ClinicCoreError):
    """Pagamento excede o saldo da fatura (modo estrito)."""
    code = "overpayment"

    def __init__(self, invoice_id, outstanding, attempted) -> None:
        super().__init__(
            f"Pagamento de {attempted} excede o saldo {outstanding} da fatura {invoice_id}",
            invoice_id=str(invoice_id),
            outstanding=str(outstanding),
            attempted=str(attempted),
        )
        self.invoice_id = invoice_id
        self.outstanding = outstanding
        self.attempted = attempted


class Busy(ClinicCoreError):
    """
    Contenção persistente no banco após esgotar as retentativas.
    O chamador pode repetir a operação inteira mais tarde.
    """
    code = "busy"
