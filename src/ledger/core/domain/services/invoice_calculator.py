"""
Cálculo puro dos totais de fatura.

Toda aritmética monetária usa `Decimal` quantizado em centavos
(ROUND_HALF_UP). O total é derivado das parcelas já arredondadas, de modo
que `total = subtotal - desconto - convênio + imposto` vale exatamente.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from odonto_core.core.domain.events.exceptions import ValidationError

from ledger.core.domain.entities.insurance_policy_entity import InsuranceAllocation, InsurancePolicyEntity
from ledger.core.domain.entities.invoice_entity import OVERDUE, PAID, PARTIALLY_PAID, UNPAID

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class LineAmounts:
    quantity: int
    unit_cost: Decimal
    discount_amount: Decimal

    @property
    def gross(self) -> Decimal:
        return money(self.unit_cost * self.quantity)

    @property
    def line_total(self) -> Decimal:
        return money(self.gross - self.discount_amount)


@dataclass(frozen=True, slots=True)
class InvoiceTotals:
    subtotal: Decimal
    discount_amount: Decimal
    insurance_discount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    allocations: tuple[InsuranceAllocation, ...] = ()


def line_total(line: LineAmounts) -> Decimal:
    if line.quantity <= 0:
        raise ValidationError("Quantidade deve ser positiva", quantity=line.quantity)
    if line.unit_cost < 0 or line.discount_amount < 0:
        raise ValidationError("Valores de linha não podem ser negativos")
    if line.discount_amount > line.gross:
        raise ValidationError(
            "Desconto da linha maior que o valor bruto",
            gross=str(line.gross),
            discount=str(line.discount_amount),
        )
    return line.line_total


def allocate_insurance(
    subtotal: Decimal,
    ceiling: Decimal,
    policies: Iterable[InsurancePolicyEntity],
) -> tuple[InsuranceAllocation, ...]:
    """
    Distribui a cobertura entre as apólices, na ordem recebida.

    Cada apólice contribui `percentual × subtotal`, limitada pelo saldo do
    teto anual e pelo que ainda resta até `ceiling`. A soma nunca excede
    `ceiling`.
    """
    allocations: list[InsuranceAllocation] = []
    allocated = ZERO
    for policy in policies:
        room = ceiling - allocated
        if room <= 0:
            break
        share = money(subtotal * policy.coverage_percentage / HUNDRED)
        cap = policy.remaining_cap
        if cap is not None:
            share = min(share, cap)
        amount = min(share, room)
        if amount > 0:
            allocations.append(InsuranceAllocation(policy_id=policy.id, amount=amount))
            allocated += amount
    return tuple(allocations)


def compute_totals(
    lines: Sequence[LineAmounts],
    *,
    tax_rate: Decimal,
    discount_amount: Decimal = ZERO,
    policies: Sequence[InsurancePolicyEntity] = (),
) -> InvoiceTotals:
    if not lines:
        raise ValidationError("Fatura sem itens", field="line_items")
    if tax_rate < 0 or tax_rate > 1:
        raise ValidationError("Alíquota fora de [0, 1]", tax_rate=str(tax_rate))

    subtotal = money(sum((line_total(line) for line in lines), ZERO))
    discount = money(discount_amount)
    if discount < 0 or discount > subtotal:
        raise ValidationError(
            "Desconto da fatura fora de [0, subtotal]",
            subtotal=str(subtotal),
            discount=str(discount),
        )

    allocations = allocate_insurance(subtotal, subtotal - discount, policies)
    insurance = money(sum((a.amount for a in allocations), ZERO))
    taxable = subtotal - discount - insurance
    tax = money(taxable * tax_rate)
    return InvoiceTotals(
        subtotal=subtotal,
        discount_amount=discount,
        insurance_discount=insurance,
        tax_rate=tax_rate,
        tax_amount=tax,
        total_amount=taxable + tax,
        allocations=allocations,
    )


def status_after_payment(current: str, paid: Decimal, total: Decimal) -> str:
    """Status derivado do valor pago; `overdue` só sai quando quitada."""
    if paid >= total:
        return PAID
    if current == OVERDUE:
        return OVERDUE
    if paid > 0:
        return PARTIALLY_PAID
    return UNPAID


def is_overdue(status: str, due_date: date | None, as_of: date) -> bool:
    return due_date is not None and due_date < as_of and status not in (PAID, OVERDUE)
