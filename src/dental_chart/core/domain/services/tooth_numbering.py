"""
Esquemas de numeração dentária.

- universal: 1–32, começando no terceiro molar superior direito.
- fdi: dois dígitos (quadrante 1–4, posição 1–8 a partir da linha média).
"""
from __future__ import annotations

from odonto_core.core.domain.events.exceptions import InvalidToothNumber, ValidationError

_POSITIONS = (
    "Central Incisor",
    "Lateral Incisor",
    "Canine",
    "First Premolar",
    "Second Premolar",
    "First Molar",
    "Second Molar",
    "Third Molar",
)
_QUADRANTS = {1: "Upper Right", 2: "Upper Left", 3: "Lower Left", 4: "Lower Right"}


def _universal_to_fdi(number: int) -> tuple[int, int]:
    if number <= 8:
        return 1, 9 - number
    if number <= 16:
        return 2, number - 8
    if number <= 24:
        return 3, 25 - number
    return 4, number - 24


class ToothNumbering:
    SCHEMES = ("universal", "fdi")

    def __init__(self, scheme: str = "universal") -> None:
        if scheme not in self.SCHEMES:
            raise ValidationError(f"Esquema de numeração desconhecido: {scheme}", field="scheme")
        self.scheme = scheme

    def is_valid(self, number: int) -> bool:
        if isinstance(number, bool) or not isinstance(number, int):
            return False
        if self.scheme == "universal":
            return 1 <= number <= 32
        quadrant, position = divmod(number, 10)
        return quadrant in _QUADRANTS and 1 <= position <= 8

    def validate(self, number: int) -> int:
        if not self.is_valid(number):
            raise InvalidToothNumber(number, self.scheme)
        return number

    def name(self, number: int) -> str:
        self.validate(number)
        if self.scheme == "universal":
            quadrant, position = _universal_to_fdi(number)
        else:
            quadrant, position = divmod(number, 10)
        return f"{_QUADRANTS[quadrant]} {_POSITIONS[position - 1]}"
