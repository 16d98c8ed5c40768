"""Player scoring service: raw players in, immutable scored players out."""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional

from fantasyxi.models.player import MatchContext, Player
from fantasyxi.models.scored import ScoredPlayer

from .features import FeatureVector, build_features, clamp, performance_volatility
from .predictors import EnsemblePredictor, PredictorStrategy

logger = logging.getLogger("uvicorn.error")


def confidence_score(features: FeatureVector) -> float:
    return clamp(
        features.consistency * 0.35
        + features.recent_form * 0.3
        + features.versatility * 0.2
        + (features.injury_risk / 10.0) * 0.15
    )


def volatility_score(features: FeatureVector) -> float:
    return clamp(
        (1.0 - features.consistency) * 0.5
        + (1.0 - features.recent_form) * 0.3
        + ((10.0 - features.injury_risk) / 10.0) * 0.2
    )


class ScoringModel:
    """Turns :class:`Player` inputs into :class:`ScoredPlayer` records.

    Stateless apart from its predictor, so one instance can be shared across
    requests and worker processes.
    """

    def __init__(self, ensemble: Optional[PredictorStrategy] = None):
        self.ensemble = ensemble if ensemble is not None else EnsemblePredictor()

    def score_player(self, player: Player, context: MatchContext) -> ScoredPlayer:
        features = build_features(player, context)
        predicted = clamp(self.ensemble.predict(features), 0.0, 100.0)
        return ScoredPlayer(
            player=player,
            predicted_points=predicted,
            confidence=confidence_score(features),
            volatility=volatility_score(features),
            recent_form=features.recent_form,
            consistency=features.consistency,
            versatility=features.versatility,
            injury_risk=features.injury_risk,
            venue_fit=features.venue_fit,
            pitch_fit=features.pitch_fit,
            weather_fit=features.weather_fit,
            opposition_strength=features.opposition_strength,
            head_to_head=features.head_to_head,
            captaincy=features.captaincy,
            ownership=features.ownership,
            price_efficiency=features.price_efficiency,
            upset_potential=features.upset_potential,
            performance_volatility=performance_volatility(player),
        )

    def score(self, players: Iterable[Player], context: MatchContext) -> List[ScoredPlayer]:
        start = time.perf_counter()
        scored = [self.score_player(player, context) for player in players]
        logger.info(
            "Scored %s players for %s in %.3fs",
            len(scored),
            context.match_id or context.venue or "match",
            time.perf_counter() - start,
        )
        return scored
