"""Instrument identifier model."""

from pydantic import BaseModel, ConfigDict, field_validator


class Symbol(BaseModel):
    """Opaque, hashable identifier for a tradable instrument."""

    model_config = ConfigDict(frozen=True)

    value: str
    market: str = "usa"

    @field_validator("value")
    @classmethod
    def _normalize(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("symbol value must not be empty")
        return v

    @classmethod
    def create(cls, ticker: str, market: str = "usa") -> "Symbol":
        return cls(value=ticker, market=market)

    def __str__(self) -> str:
        return self.value
