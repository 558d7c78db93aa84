"""
Dominio → ORM

⚑ IDs UUID em todas as entidades
⚑ Valores monetários sempre em DecimalField (nunca float)
⚑ Unicidade e consistência (UK + CHECK) no próprio banco
⚑ Agenda, pagamentos e procedimentos nunca são apagados fisicamente
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import CheckConstraint, F, Index, Q, UniqueConstraint

MONEY = dict(max_digits=12, decimal_places=2)


# ╭──────────────────────────────────────────────╮
# │ 1. Profissionais & Pacientes                │
# ╰──────────────────────────────────────────────╯
class Staff(models.Model):
    class Role(models.TextChoices):
        DENTIST = "dentist", "Dentist"
        HYGIENIST = "hygienist", "Hygienist"
        ASSISTANT = "assistant", "Assistant"
        ADMIN = "admin", "Admin"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    email = models.EmailField(unique=True, max_length=100, blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.DENTIST)
    license_number = models.CharField(max_length=50, blank=True, null=True)
    specialization = models.CharField(max_length=100, blank=True, null=True)
    is_active = models.BooleanField(default=True, db_index=True)
    hire_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "staff"
        ordering = ["last_name", "first_name"]

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Patient(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient_number = models.CharField(max_length=20, unique=True)
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    date_of_birth = models.DateField(blank=True, null=True)
    email = models.EmailField(max_length=100, blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "patients"
        indexes = [Index(fields=["first_name", "last_name"])]

    def __str__(self) -> str:
        return f"{self.patient_number} – {self.first_name} {self.last_name}"


# ╭──────────────────────────────────────────────╮
# │ 2. Agenda                                   │
# ╰──────────────────────────────────────────────╯
class AppointmentType(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    type_name = models.CharField(max_length=100, unique=True)
    duration_minutes = models.PositiveIntegerField(default=30)
    color_code = models.CharField(max_length=7, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "appointment_types"
        constraints = [
            CheckConstraint(condition=Q(duration_minutes__gt=0), name="ck_appointment_type_duration_pos"),
        ]

    def __str__(self) -> str:
        return self.type_name


class Appointment(models.Model):
    class Status(models.TextChoices):
        SCHEDULED = "scheduled", "Scheduled"
        CONFIRMED = "confirmed", "Confirmed"
        CANCELLED = "cancelled", "Cancelled"
        COMPLETED = "completed", "Completed"
        NO_SHOW = "no_show", "No show"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="appointments")
    staff = models.ForeignKey(Staff, on_delete=models.PROTECT, related_name="appointments")
    appointment_type = models.ForeignKey(AppointmentType, on_delete=models.PROTECT, related_name="appointments")
    start_at = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField()
    # derivado de start_at + duration_minutes; mantido para consultas por faixa
    end_at = models.DateTimeField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SCHEDULED, db_index=True)
    notes = models.TextField(blank=True, null=True)
    reminder_sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "appointments"
        ordering = ["start_at"]
        indexes = [
            Index(fields=["staff", "start_at"], name="appointment_staff_start_idx"),
            Index(fields=["patient"], name="appointment_patient_idx"),
        ]
        constraints = [
            CheckConstraint(condition=Q(duration_minutes__gt=0), name="ck_appointment_duration_pos"),
            CheckConstraint(condition=Q(end_at__gt=F("start_at")), name="ck_appointment_end_after_start"),
        ]

    def __str__(self) -> str:
        return f"{self.staff_id} @ {self.start_at:%Y-%m-%d %H:%M} ({self.status})"


# ╭──────────────────────────────────────────────╮
# │ 3. Atendimentos & Odontograma               │
# ╰──────────────────────────────────────────────╯
class Visit(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="visits")
    staff = models.ForeignKey(Staff, on_delete=models.PROTECT, related_name="visits")
    appointment = models.OneToOneField(
        Appointment, on_delete=models.PROTECT, blank=True, null=True, related_name="visit"
    )
    visit_date = models.DateTimeField()
    chief_complaint = models.TextField(blank=True, null=True)
    diagnosis = models.TextField(blank=True, null=True)
    treatment_plan = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "visits"
        indexes = [Index(fields=["patient"]), Index(fields=["visit_date"])]

    def __str__(self) -> str:
        return f"Visit {self.id} ({self.visit_date:%Y-%m-%d})"


class DentalChart(models.Model):
    class ToothStatus(models.TextChoices):
        HEALTHY = "healthy", "Healthy"
        CARIES = "caries", "Caries"
        FILLING = "filling", "Filling"
        CROWN = "crown", "Crown"
        MISSING = "missing", "Missing"
        IMPLANT = "implant", "Implant"
        ROOT_CANAL = "root_canal", "Root canal"
        EXTRACTION_PLANNED = "extraction_planned", "Extraction planned"
        BRIDGE = "bridge", "Bridge"
        SEALANT = "sealant", "Sealant"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    visit = models.ForeignKey(Visit, on_delete=models.CASCADE, related_name="chart_entries")
    tooth_number = models.PositiveSmallIntegerField()
    tooth_name = models.CharField(max_length=60, blank=True, null=True)
    current_status = models.CharField(max_length=30, choices=ToothStatus.choices)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "dental_chart"
        ordering = ["tooth_number"]
        constraints = [
            UniqueConstraint(fields=["visit", "tooth_number"], name="uq_chart_visit_tooth"),
        ]

    def __str__(self) -> str:
        return f"{self.visit_id} #{self.tooth_number} ({self.current_status})"


class ToothProcedure(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    dental_chart = models.ForeignKey(DentalChart, on_delete=models.CASCADE, related_name="procedures")
    sequence = models.PositiveIntegerField()
    procedure_name = models.CharField(max_length=100)
    procedure_date = models.DateField()
    cost = models.DecimalField(**MONEY, blank=True, null=True)
    insurance_covered = models.DecimalField(**MONEY, default=Decimal("0.00"))
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "tooth_procedures"
        ordering = ["dental_chart", "sequence"]
        constraints = [
            UniqueConstraint(fields=["dental_chart", "sequence"], name="uq_tooth_procedure_sequence"),
            CheckConstraint(condition=Q(cost__isnull=True) | Q(cost__gte=0), name="ck_tooth_procedure_cost_nonneg"),
        ]

    def __str__(self) -> str:
        return f"{self.procedure_name} ({self.procedure_date})"


# ╭──────────────────────────────────────────────╮
# │ 4. Catálogo de Procedimentos                │
# ╰──────────────────────────────────────────────╯
class Procedure(models.Model):
    class Category(models.TextChoices):
        DIAGNOSTIC = "diagnostic", "Diagnostic"
        PREVENTIVE = "preventive", "Preventive"
        RESTORATIVE = "restorative", "Restorative"
        ENDODONTIC = "endodontic", "Endodontic"
        PROSTHODONTIC = "prosthodontic", "Prosthodontic"
        SURGICAL = "surgical", "Surgical"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    procedure_code = models.CharField(max_length=20, unique=True)
    procedure_name = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=Category.choices, blank=True, null=True)
    base_cost = models.DecimalField(**MONEY)
    duration_minutes = models.PositiveIntegerField(default=30)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "procedures"

    def __str__(self) -> str:
        return f"{self.procedure_code} – {self.procedure_name}"


# ╭──────────────────────────────────────────────╮
# │ 5. Convênios                                │
# ╰──────────────────────────────────────────────╯
class InsurancePolicy(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="insurance_policies")
    policy_number = models.CharField(max_length=50)
    insurance_company = models.CharField(max_length=100)
    coverage_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    max_annual_coverage = models.DecimalField(**MONEY, blank=True, null=True)
    deductible_amount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    is_active = models.BooleanField(default=True)
    expiry_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "insurance_policies"
        ordering = ["created_at", "policy_number"]
        constraints = [
            UniqueConstraint(fields=["patient", "policy_number"], name="uq_policy_patient_number"),
            CheckConstraint(
                condition=Q(coverage_percentage__gte=0) & Q(coverage_percentage__lte=100),
                name="ck_policy_coverage_range",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.insurance_company} {self.policy_number}"


# ╭──────────────────────────────────────────────╮
# │ 6. Faturas, Itens & Pagamentos              │
# ╰──────────────────────────────────────────────╯
class Invoice(models.Model):
    class Status(models.TextChoices):
        UNPAID = "unpaid", "Unpaid"
        PARTIALLY_PAID = "partially_paid", "Partially paid"
        PAID = "paid", "Paid"
        OVERDUE = "overdue", "Overdue"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="invoices")
    visit = models.OneToOneField(Visit, on_delete=models.PROTECT, related_name="invoice")
    invoice_number = models.CharField(max_length=24, unique=True)
    invoice_date = models.DateField()
    due_date = models.DateField(blank=True, null=True)
    subtotal = models.DecimalField(**MONEY)
    discount_amount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    tax_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0.0000"))
    tax_amount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    insurance_discount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    total_amount = models.DecimalField(**MONEY)
    # espelho do ledger; sempre recalculado a partir de Payment
    paid_amount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.UNPAID, db_index=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "invoices"
        ordering = ["-invoice_date", "invoice_number"]
        indexes = [Index(fields=["patient"]), Index(fields=["invoice_date"]), Index(fields=["due_date"])]
        constraints = [
            CheckConstraint(condition=Q(total_amount__gte=0), name="ck_invoice_total_nonneg"),
            CheckConstraint(condition=Q(subtotal__gte=0), name="ck_invoice_subtotal_nonneg"),
        ]

    def __str__(self) -> str:
        return f"{self.invoice_number} ({self.status})"


class InvoiceLineItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="line_items")
    position = models.PositiveIntegerField()
    procedure = models.ForeignKey(Procedure, on_delete=models.PROTECT, related_name="invoice_lines")
    quantity = models.PositiveIntegerField(default=1)
    unit_cost = models.DecimalField(**MONEY)
    discount_amount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    line_total = models.DecimalField(**MONEY)

    class Meta:
        db_table = "invoice_line_items"
        ordering = ["invoice", "position"]
        constraints = [
            UniqueConstraint(fields=["invoice", "position"], name="uq_invoice_line_position"),
            CheckConstraint(condition=Q(quantity__gt=0), name="ck_invoice_line_quantity_pos"),
            CheckConstraint(condition=Q(line_total__gte=0), name="ck_invoice_line_total_nonneg"),
        ]


class Payment(models.Model):
    class Method(models.TextChoices):
        CASH = "cash", "Cash"
        CARD = "card", "Card"
        CHECK = "check", "Check"
        INSURANCE = "insurance", "Insurance"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name="payments")
    payment_date = models.DateTimeField()
    payment_method = models.CharField(max_length=20, choices=Method.choices)
    amount = models.DecimalField(**MONEY)
    reference_number = models.CharField(max_length=50, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    recorded_by = models.ForeignKey(
        Staff, on_delete=models.SET_NULL, blank=True, null=True, related_name="payments_recorded"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "payments"
        ordering = ["payment_date", "created_at"]
        indexes = [Index(fields=["invoice"]), Index(fields=["payment_date"])]
        constraints = [
            CheckConstraint(condition=Q(amount__gt=0), name="ck_payment_amount_pos"),
        ]

    def __str__(self) -> str:
        return f"{self.amount} ({self.payment_method})"


class InsuranceClaim(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        SUBMITTED = "submitted", "Submitted"
        APPROVED = "approved", "Approved"
        DENIED = "denied", "Denied"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="insurance_claims")
    insurance_policy = models.ForeignKey(InsurancePolicy, on_delete=models.PROTECT, related_name="claims")
    claim_number = models.CharField(max_length=50, blank=True, null=True)
    claim_amount = models.DecimalField(**MONEY)
    approved_amount = models.DecimalField(**MONEY, blank=True, null=True)
    claim_status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    submission_date = models.DateField(blank=True, null=True)
    approval_date = models.DateField(blank=True, null=True)
    denial_reason = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "insurance_claims"
        constraints = [
            UniqueConstraint(fields=["invoice", "insurance_policy"], name="uq_claim_invoice_policy"),
            CheckConstraint(condition=Q(claim_amount__gte=0), name="ck_claim_amount_nonneg"),
        ]

    def __str__(self) -> str:
        return f"{self.claim_number or self.id} ({self.claim_status})"
