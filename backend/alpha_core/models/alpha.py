"""Alpha (directional signal) models."""

import hashlib
from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict

from alpha_core.models.symbol import Symbol


class AlphaDirection(int, Enum):
    """Predicted direction of the alpha."""

    DOWN = -1
    FLAT = 0
    UP = 1


class AlphaType(str, Enum):
    """What the alpha forecasts."""

    PRICE = "price"
    VOLATILITY = "volatility"


def _generate_alpha_id(
    source_model: str,
    symbol: Symbol,
    generated_time: datetime,
    direction: int,
) -> str:
    """Generate deterministic alpha ID based on alpha attributes.

    Replaying the same observations yields the same IDs.
    """
    ts_str = generated_time.strftime("%Y%m%d%H%M%S%f")
    key = f"{source_model}:{symbol.market}:{symbol.value}:{ts_str}:{direction}"
    return hashlib.sha256(key.encode()).hexdigest()[:32]


class Alpha(BaseModel):
    """Directional forecast for one instrument over a validity period.

    Two alphas are equal when symbol, type and direction match. Period,
    generation time and id do not take part in equality, which lets a
    tracker suppress an alpha that repeats its previous call.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    symbol: Symbol
    type: AlphaType = AlphaType.PRICE
    direction: AlphaDirection
    period: timedelta
    generated_time_utc: datetime
    source_model: str = ""

    def model_post_init(self, __context) -> None:
        """Generate deterministic ID after model initialization."""
        if not self.id:
            object.__setattr__(
                self,
                "id",
                _generate_alpha_id(
                    self.source_model,
                    self.symbol,
                    self.generated_time_utc,
                    self.direction.value,
                ),
            )

    @property
    def key(self) -> tuple[Symbol, AlphaType, AlphaDirection]:
        return (self.symbol, self.type, self.direction)

    @property
    def close_time_utc(self) -> datetime:
        """Time at which the forecast expires."""
        return self.generated_time_utc + self.period

    def clone(self) -> "Alpha":
        """Return a value snapshot of this alpha."""
        return self.model_copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Alpha):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)
