"""Aggregate diversity statistics across a generated batch."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from itertools import combinations
from typing import Sequence, Tuple

from fantasyxi.models.lineup import Lineup


@dataclass(frozen=True)
class PlayerUsage:
    player_id: str
    name: str
    count: int
    exposure: float
    captain_count: int = 0


@dataclass(frozen=True)
class BatchStatistics:
    lineup_count: int
    unique_captains: int
    unique_vice_captains: int
    unique_pairs: int
    unique_lineups: int
    players_used: int
    pool_size: int
    pool_utilization: float
    mean_overlap: float
    max_overlap: int
    fallback_count: int
    player_usage: Tuple[PlayerUsage, ...] = ()


def mean_pairwise_overlap(lineups: Sequence[Lineup]) -> Tuple[float, int]:
    """Average and worst count of shared players over every lineup pair."""

    if len(lineups) < 2:
        return 0.0, 0
    members = [set(lineup.player_ids) for lineup in lineups]
    overlaps = [len(a & b) for a, b in combinations(members, 2)]
    return sum(overlaps) / len(overlaps), max(overlaps)


def summarize_batch(lineups: Sequence[Lineup], pool_size: int) -> BatchStatistics:
    usage: Counter = Counter()
    captains: Counter = Counter()
    names = {}
    for lineup in lineups:
        captains[lineup.captain_id] += 1
        for player in lineup.players:
            usage[player.player_id] += 1
            names[player.player_id] = player.name

    total = len(lineups)
    mean_overlap, max_overlap = mean_pairwise_overlap(lineups)
    player_usage = tuple(
        PlayerUsage(
            player_id=pid,
            name=names[pid],
            count=count,
            exposure=count / total if total else 0.0,
            captain_count=captains.get(pid, 0),
        )
        for pid, count in sorted(usage.items(), key=lambda item: (-item[1], item[0]))
    )
    return BatchStatistics(
        lineup_count=total,
        unique_captains=len(captains),
        unique_vice_captains=len({lineup.vice_captain_id for lineup in lineups}),
        unique_pairs=len({(lineup.captain_id, lineup.vice_captain_id) for lineup in lineups}),
        unique_lineups=len({lineup.signature for lineup in lineups}),
        players_used=len(usage),
        pool_size=pool_size,
        pool_utilization=(len(usage) / pool_size * 100.0) if pool_size else 0.0,
        mean_overlap=mean_overlap,
        max_overlap=max_overlap,
        fallback_count=sum(1 for lineup in lineups if lineup.is_fallback),
        player_usage=player_usage,
    )
