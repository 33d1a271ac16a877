from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Currency:
    """決済通貨（ISO 4217）

    補助単位が 1/100 の通貨のみ扱う（to_minor_units の前提）。
    """

    SUPPORTED: ClassVar[frozenset[str]] = frozenset({"EUR", "USD", "GBP", "CHF"})

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.strip().upper()
        if normalized not in self.SUPPORTED:
            raise ValueError(f"Unsupported currency: {self.code}")
        object.__setattr__(self, "code", normalized)

    def __str__(self) -> str:
        return self.code

    @classmethod
    def eur(cls) -> Currency:
        return cls("EUR")
