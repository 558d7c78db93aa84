from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from django.db.models import Q, Sum

from odonto_core.adapters.storage.transaction_runner import TransactionHandle
from plugins.django_interface.models import InsuranceClaim, InsurancePolicy

from ledger.core.domain.entities.insurance_policy_entity import InsurancePolicyEntity
from ledger.core.domain.repositories.insurance_policy_repository import InsurancePolicyLookup


class InsurancePolicyRepoImpl(InsurancePolicyLookup):
    def active_for_patient(self, tx: TransactionHandle, patient_id: UUID, as_of: date) -> list[InsurancePolicyEntity]:
        qs = (
            InsurancePolicy.objects.using(tx.alias)
            .filter(patient_id=patient_id, is_active=True)
            .filter(Q(expiry_date__isnull=True) | Q(expiry_date__gte=as_of))
            .order_by("created_at", "id")
            # trava as apólices antes de somar os sinistros do ano
            .select_for_update()
        )
        policies = []
        for model in qs:
            used = (
                InsuranceClaim.objects.using(tx.alias)
                .filter(insurance_policy=model, invoice__invoice_date__year=as_of.year)
                .exclude(claim_status=InsuranceClaim.Status.DENIED)
                .aggregate(s=Sum("claim_amount"))["s"]
            )
            policies.append(
                InsurancePolicyEntity.from_model(
                    model, used_this_year=used if used is not None else Decimal("0.00")
                )
            )
        return policies
