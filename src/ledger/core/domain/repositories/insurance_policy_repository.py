from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from uuid import UUID

from odonto_core.adapters.storage.transaction_runner import TransactionHandle

from ledger.core.domain.entities.insurance_policy_entity import InsurancePolicyEntity


class InsurancePolicyLookup(ABC):
    @abstractmethod
    def active_for_patient(self, tx: TransactionHandle, patient_id: UUID, as_of: date) -> list[InsurancePolicyEntity]:
        """
        Apólices vigentes em `as_of`, na ordem de aplicação, com
        `used_this_year` preenchido para o ano-calendário de `as_of`.
        """
        ...
