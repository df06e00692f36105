from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Portfolio(BaseModel):
    """Read-only balance snapshot: asset symbol -> amount held."""

    model_config = ConfigDict(frozen=True)

    balances: Dict[str, float] = Field(default_factory=dict)

    @field_validator("balances")
    @classmethod
    def non_negative(cls, v: Dict[str, float]) -> Dict[str, float]:
        negative = sorted(asset for asset, amount in v.items() if amount < 0)
        if negative:
            raise ValueError(f"negative balances for {negative}")
        return v

    def balance_of(self, asset: str) -> float:
        return self.balances.get(asset, 0.0)
