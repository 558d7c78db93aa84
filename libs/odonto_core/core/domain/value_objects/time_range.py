from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from odonto_core.core.domain.events.exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class TimeRange:
    """
    Intervalo semiaberto [start, start + duration_minutes).

    Dois intervalos adjacentes (o fim de um igual ao início do outro)
    não se sobrepõem.
    """
    start: datetime
    duration_minutes: int

    def __post_init__(self) -> None:
        if not isinstance(self.start, datetime):
            raise ValidationError("start deve ser datetime", field="start")
        if isinstance(self.duration_minutes, bool) or not isinstance(self.duration_minutes, int):
            raise ValidationError("duration_minutes deve ser inteiro", field="duration_minutes")
        if self.duration_minutes <= 0:
            raise ValidationError("duration_minutes deve ser > 0", field="duration_minutes")

    @classmethod
    def between(cls, start: datetime, end: datetime) -> TimeRange:
        minutes, rest = divmod((end - start).total_seconds(), 60)
        if rest:
            raise ValidationError("intervalo deve ter minutos inteiros", field="end")
        return cls(start=start, duration_minutes=int(minutes))

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

    def overlaps(self, other: TimeRange) -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"
