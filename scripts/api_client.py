"""Lightweight REST client for the fantasyxi API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def load_slate(path: Path) -> dict:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid slate JSON: {exc}") from exc


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the fantasyxi REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("slate", type=Path, nargs="?", help='Slate JSON ({"context": {...}, "players": [...]})')
    parser.add_argument("--lineups", type=int, default=10, help="Number of lineups to request")
    parser.add_argument("--risk", default="balanced", help="Risk profile")
    parser.add_argument("--preset", default=None, help="Preset template id")
    parser.add_argument("--seed", type=int, default=0, help="Batch seed")
    parser.add_argument("--score-only", action="store_true", help="Only score the players and print them")
    parser.add_argument("--list-presets", action="store_true", help="List preset templates and exit")
    parser.add_argument("--list-rules", action="store_true", help="List roster rule sets and exit")
    args = parser.parse_args()

    if args.list_presets or args.list_rules:
        with httpx.Client(base_url=args.base_url) as client:
            if args.list_rules:
                resp = client.get("/rules")
                resp.raise_for_status()
                print(json.dumps(resp.json(), indent=2))
            if args.list_presets:
                resp = client.get("/presets")
                resp.raise_for_status()
                print(json.dumps(resp.json(), indent=2))
        return

    if args.slate is None:
        raise SystemExit("slate file is required unless using --list-presets/--list-rules")

    slate = load_slate(args.slate)
    with httpx.Client(base_url=args.base_url, timeout=300.0) as client:
        if args.score_only:
            resp = client.post("/players/score", json={"context": slate.get("context", {}), "players": slate["players"]})
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        options = {"lineup_count": args.lineups, "risk_profile": args.risk, "seed": args.seed}
        if args.preset:
            options["preset_id"] = args.preset
        resp = client.post(
            "/lineups",
            json={"context": slate.get("context", {}), "players": slate["players"], "options": options},
        )
        if resp.status_code == 422:
            raise SystemExit(f"Request rejected: {json.dumps(resp.json(), indent=2)}")
        resp.raise_for_status()
        payload = resp.json()
        print("Batch stats:", json.dumps(payload["stats"], indent=2))
        print(f"Received {len(payload['lineups'])} lineups")
        print(json.dumps(payload["lineups"][0], indent=2))


if __name__ == "__main__":
    main()
