"""Statistical range filters over the scored player pool."""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional

from pydantic import BaseModel, model_validator
from pydantic.config import ConfigDict

from fantasyxi.exceptions import FilterExhaustion
from fantasyxi.models.player import ADVANCED_ATTRIBUTES
from fantasyxi.models.scored import ScoredPlayer

logger = logging.getLogger("uvicorn.error")

FILTERABLE_ATTRIBUTES: tuple[str, ...] = (
    "predicted_points",
    "confidence",
    "volatility",
    "performance_volatility",
    *ADVANCED_ATTRIBUTES,
    "credits",
    "points",
    "selection_pct",
    "dream_team_pct",
)


class AttributeRange(BaseModel):
    """Inclusive band on one attribute; either end may be open."""

    min: Optional[float] = None
    max: Optional[float] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_order(self) -> "AttributeRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"Range minimum {self.min} is above maximum {self.max}")
        return self

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


def check_attributes(names: Iterable[str]) -> None:
    unknown = sorted(set(names) - set(FILTERABLE_ATTRIBUTES))
    if unknown:
        raise KeyError(f"Unknown filter attribute(s): {', '.join(unknown)}")


def _passes(player: ScoredPlayer, ranges: Mapping[str, AttributeRange]) -> bool:
    return all(band.contains(player.attribute(name)) for name, band in ranges.items())


def filter_pool(
    pool: Iterable[ScoredPlayer],
    ranges: Mapping[str, AttributeRange],
    *,
    keep_ids: Iterable[str] = (),
    required: Optional[int] = None,
) -> List[ScoredPlayer]:
    """Keep players whose attributes fall inside every range.

    Players in ``keep_ids`` always survive. When ``required`` is given and
    fewer players remain, :class:`FilterExhaustion` is raised.
    """

    check_attributes(ranges)
    players = list(pool)
    keep = set(keep_ids)
    filtered = [player for player in players if player.player_id in keep or _passes(player, ranges)]
    logger.info("Attribute filters kept %s/%s players (%s)", len(filtered), len(players), ", ".join(sorted(ranges)) or "none")
    if required is not None and len(filtered) < required:
        raise FilterExhaustion(remaining=len(filtered), required=required)
    return filtered
