"""REST API for the fantasyxi lineup engine."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from fantasyxi.api.schemas import (
    BatchStatsResponse,
    LineupBatchResponse,
    LineupPlayerResponse,
    LineupRequest,
    LineupResponse,
    PlayerUsageResponse,
    RunFailureResponse,
    ScorePlayersRequest,
    ScorePlayersResponse,
)
from fantasyxi.config.roster import RoleShape, RosterConstraints, common_shapes, get_rules, iter_rules
from fantasyxi.config.settings import OptimizerSettings
from fantasyxi.exceptions import InfeasiblePool
from fantasyxi.models.lineup import Lineup
from fantasyxi.models.player import ROLE_ORDER
from fantasyxi.optimizer import LineupGenerator, PresetCatalog
from fantasyxi.scoring import ScoringModel

logger = logging.getLogger("uvicorn.error")


def _rules_payload(rules: RosterConstraints) -> dict[str, Any]:
    return {
        "name": rules.name,
        "version": rules.version,
        "squad_size": rules.squad_size,
        "salary_cap": rules.salary_cap,
        "max_per_team": rules.max_per_team,
        "role_bounds": {
            role.value: {"min": rules.bounds(role).min, "max": rules.bounds(role).max} for role in ROLE_ORDER
        },
        "common_shapes": [{"name": name, "shape": shape.label} for name, shape in common_shapes(rules)],
    }


def _lineup_response(lineup: Lineup) -> LineupResponse:
    return LineupResponse(
        lineup_id=lineup.lineup_id,
        captain_id=lineup.captain_id,
        vice_captain_id=lineup.vice_captain_id,
        total_credits=lineup.total_credits,
        role_counts=dict(lineup.role_counts),
        expected_points=lineup.expected_points,
        risk_score=lineup.risk_score,
        confidence_score=lineup.confidence_score,
        diversity_score=lineup.diversity_score,
        strategy=lineup.strategy,
        leadership_strategy=lineup.leadership_strategy,
        rationale=lineup.rationale,
        is_fallback=lineup.is_fallback,
        warnings=list(lineup.warnings),
        players=[
            LineupPlayerResponse(
                player_id=player.player_id,
                name=player.name,
                team=player.team,
                role=player.role.value,
                credits=player.credits,
                predicted_points=player.predicted_points,
                is_captain=player.player_id == lineup.captain_id,
                is_vice_captain=player.player_id == lineup.vice_captain_id,
            )
            for player in lineup.players
        ],
    )


def create_app(settings: Optional[OptimizerSettings] = None) -> FastAPI:
    app = FastAPI(title="fantasyxi lineup engine")
    app.state.settings = settings or OptimizerSettings.from_env()
    app.state.scoring_model = ScoringModel()
    app.state.presets = PresetCatalog()

    @app.exception_handler(InfeasiblePool)
    async def infeasible_pool_handler(request: Request, exc: InfeasiblePool) -> JSONResponse:
        logger.warning("Rejected %s: %s", request.url.path, exc.message)
        return JSONResponse(status_code=422, content=exc.to_dict())

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/rules")
    async def rules() -> list[dict[str, Any]]:
        return [_rules_payload(item) for item in iter_rules()]

    @app.get("/presets")
    async def presets(tag: str | None = None, risk_level: str | None = None) -> list[dict[str, Any]]:
        catalog: PresetCatalog = app.state.presets
        selected = list(catalog.by_tag(tag) if tag else catalog)
        if risk_level:
            matching = {preset.preset_id for preset in catalog.by_risk_level(risk_level)}
            selected = [preset for preset in selected if preset.preset_id in matching]
        return [
            {
                "preset_id": preset.preset_id,
                "name": preset.name,
                "description": preset.description,
                "shape": preset.shape.label,
                "risk_level": preset.risk_level,
                "tags": list(preset.tags),
                "aliases": list(preset.aliases),
            }
            for preset in selected
        ]

    @app.post("/players/score", response_model=ScorePlayersResponse)
    async def score_players(payload: ScorePlayersRequest) -> ScorePlayersResponse:
        scored = app.state.scoring_model.score(payload.players, payload.context)
        return ScorePlayersResponse(players=scored)

    @app.post("/lineups", response_model=LineupBatchResponse)
    async def build(payload: LineupRequest) -> LineupBatchResponse:
        try:
            constraints = get_rules(payload.rules)
        except KeyError as exc:
            raise HTTPException(status_code=400, detail=str(exc.args[0])) from exc

        options = payload.options
        if options.mode == "preset" or options.preset_id:
            try:
                app.state.presets.get(options.preset_id or "")
            except KeyError as exc:
                raise HTTPException(status_code=400, detail=str(exc.args[0])) from exc
        try:
            if options.role_shape:
                constraints.narrowed_to(RoleShape.parse(options.role_shape))
            if options.team_split:
                constraints.check_split(options.team_split)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        start = time.perf_counter()
        generator = LineupGenerator(
            constraints=constraints,
            settings=app.state.settings,
            scoring_model=app.state.scoring_model,
            presets=app.state.presets,
        )
        scored = generator.scoring_model.score(payload.players, payload.context)
        teams = tuple(team for team in (payload.context.team1, payload.context.team2) if team)
        output = generator.generate_batch(scored, options, teams=teams)

        stats = output.stats
        message = None
        if output.failures:
            message = f"{len(output.failures)} lineup(s) used the minimal fallback"
        logger.info(
            "Served %s lineups in %.2fs (%s failures)",
            len(output.lineups),
            time.perf_counter() - start,
            len(output.failures),
        )
        return LineupBatchResponse(
            lineups=[_lineup_response(lineup) for lineup in output.lineups],
            stats=BatchStatsResponse(**{key: value for key, value in asdict(stats).items() if key != "player_usage"}),
            player_usage=[
                PlayerUsageResponse(
                    player_id=usage.player_id,
                    name=usage.name,
                    count=usage.count,
                    exposure=usage.exposure,
                    captain_count=usage.captain_count,
                )
                for usage in stats.player_usage
            ],
            failures=[
                RunFailureResponse(index=failure.index, reason=failure.reason, recovery=failure.recovery)
                for failure in output.failures
            ],
            message=message,
        )

    return app


__all__ = ["create_app"]
