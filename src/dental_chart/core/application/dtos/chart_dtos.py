from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ToothStatus = Literal[
    "healthy",
    "caries",
    "filling",
    "crown",
    "missing",
    "implant",
    "root_canal",
    "extraction_planned",
    "bridge",
    "sealant",
]


class ToothProcedureDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    procedure_name: str = Field(..., min_length=1, max_length=100)
    procedure_date: date
    cost: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    insurance_covered: Decimal = Field(Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    notes: str | None = None


class ToothUpdateDTO(BaseModel):
    """
    Atualização de um dente dentro do lote da visita.
    O número do dente é validado contra o esquema configurado pelo
    ChartTransactionManager, não aqui.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    tooth_number: int = Field(..., strict=True)
    status: ToothStatus
    notes: str | None = None
    procedures: tuple[ToothProcedureDTO, ...] = ()

    @field_validator("procedures", mode="before")
    @classmethod
    def _coerce_procedures(cls, value):
        return tuple(value or ())
