import uuid
from datetime import date
from decimal import Decimal as D

from django.test import SimpleTestCase

from odonto_core.core.domain.events.exceptions import ValidationError

from ledger.core.domain.entities.insurance_policy_entity import InsurancePolicyEntity
from ledger.core.domain.services.invoice_calculator import (
    LineAmounts,
    compute_totals,
    is_overdue,
    status_after_payment,
)


def policy(pct, cap=None, used="0.00", **kw):
    return InsurancePolicyEntity(
        id=uuid.uuid4(),
        patient_id=uuid.uuid4(),
        policy_number="P",
        insurance_company="Acme",
        coverage_percentage=D(pct),
        max_annual_coverage=D(cap) if cap is not None else None,
        used_this_year=D(used),
        **kw,
    )


def line(unit, qty=1, discount="0.00"):
    return LineAmounts(quantity=qty, unit_cost=D(unit), discount_amount=D(discount))


class ComputeTotalsTests(SimpleTestCase):
    def test_no_insurance(self):
        t = compute_totals([line("600.00"), line("200.00", qty=2)], tax_rate=D("0.08"))
        self.assertEqual(t.subtotal, D("1000.00"))
        self.assertEqual(t.insurance_discount, D("0.00"))
        self.assertEqual(t.tax_amount, D("80.00"))
        self.assertEqual(t.total_amount, D("1080.00"))

    def test_combined_coverage_is_capped_at_subtotal(self):
        t = compute_totals([line("1000.00")], tax_rate=D("0"), policies=[policy("80"), policy("50")])
        self.assertEqual(t.insurance_discount, D("1000.00"))
        self.assertEqual([a.amount for a in t.allocations], [D("800.00"), D("200.00")])
        self.assertEqual(t.total_amount, D("0.00"))

    def test_tax_applies_after_insurance(self):
        t = compute_totals([line("1000.00")], tax_rate=D("0.08"), policies=[policy("50")])
        self.assertEqual(t.insurance_discount, D("500.00"))
        self.assertEqual(t.tax_amount, D("40.00"))
        self.assertEqual(t.total_amount, D("540.00"))

    def test_annual_cap_limits_policy_share(self):
        t = compute_totals([line("1000.00")], tax_rate=D("0"), policies=[policy("80", cap="300.00", used="100.00")])
        self.assertEqual(t.insurance_discount, D("200.00"))

    def test_exhausted_cap_contributes_nothing(self):
        t = compute_totals([line("500.00")], tax_rate=D("0"), policies=[policy("50", cap="1000.00", used="1000.00")])
        self.assertEqual(t.allocations, ())

    def test_invoice_discount_reduces_insurance_room(self):
        t = compute_totals(
            [line("1000.00")], tax_rate=D("0"), discount_amount=D("100.00"), policies=[policy("100")]
        )
        self.assertEqual(t.insurance_discount, D("900.00"))
        self.assertEqual(t.total_amount, D("0.00"))

    def test_rounding_half_up_and_exact_identity(self):
        t = compute_totals([line("33.33", qty=3)], tax_rate=D("0.08"), policies=[policy("15")])
        self.assertEqual(t.subtotal, D("99.99"))
        self.assertEqual(t.insurance_discount, D("15.00"))
        self.assertEqual(t.tax_amount, D("6.80"))
        self.assertEqual(t.total_amount, D("91.79"))
        self.assertEqual(
            t.total_amount, t.subtotal - t.discount_amount - t.insurance_discount + t.tax_amount
        )

    def test_line_discount(self):
        t = compute_totals([line("200.00", qty=2, discount="50.00")], tax_rate=D("0"))
        self.assertEqual(t.subtotal, D("350.00"))

    def test_invalid_inputs(self):
        cases = [
            lambda: compute_totals([], tax_rate=D("0")),
            lambda: compute_totals([line("10.00")], tax_rate=D("-0.01")),
            lambda: compute_totals([line("10.00")], tax_rate=D("1.5")),
            lambda: compute_totals([line("10.00", discount="10.01")], tax_rate=D("0")),
            lambda: compute_totals([line("10.00", qty=0)], tax_rate=D("0")),
            lambda: compute_totals([line("10.00")], tax_rate=D("0"), discount_amount=D("11.00")),
        ]
        for i, case in enumerate(cases):
            with self.subTest(case=i), self.assertRaises(ValidationError):
                case()


class StatusRulesTests(SimpleTestCase):
    def test_status_after_payment(self):
        self.assertEqual(status_after_payment("unpaid", D("0"), D("100")), "unpaid")
        self.assertEqual(status_after_payment("unpaid", D("40"), D("100")), "partially_paid")
        self.assertEqual(status_after_payment("partially_paid", D("100"), D("100")), "paid")
        self.assertEqual(status_after_payment("partially_paid", D("120"), D("100")), "paid")
        self.assertEqual(status_after_payment("overdue", D("40"), D("100")), "overdue")
        self.assertEqual(status_after_payment("overdue", D("100"), D("100")), "paid")

    def test_is_overdue(self):
        due = date(2026, 3, 1)
        self.assertTrue(is_overdue("unpaid", due, date(2026, 3, 2)))
        self.assertTrue(is_overdue("partially_paid", due, date(2026, 3, 2)))
        self.assertFalse(is_overdue("unpaid", due, date(2026, 3, 1)))
        self.assertFalse(is_overdue("paid", due, date(2026, 4, 1)))
        self.assertFalse(is_overdue("overdue", due, date(2026, 4, 1)))
        self.assertFalse(is_overdue("unpaid", None, date(2026, 4, 1)))
