#!/usr/bin/env python3
"""
Benchmark: how often the model's move survives validation, and how fast.

Sends a fixed set of positions to a running server and prints, per position,
the move returned, whether it came with a warning (random fallback due to API
limits or a missing key), and the round-trip time. Run it against both move
endpoints to compare the standard and rich prompts.

Usage: python3 tools/bench.py [--url http://127.0.0.1:8000] [--endpoint /api/chess-move]
"""
import argparse
import os
import sys
import time

import chess
import httpx

REPO = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO not in sys.path:
    sys.path.insert(0, REPO)

from engine.evaluate import evaluate_board  # noqa: E402

# Fixed positions spanning opening, middlegame, endgame, plus tactical spots
# where a piece is hanging or the side to move is in check.
POSITIONS = [
    ("After 1.e4",   "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"),
    ("Italian",      "r1bqk1nr/pppp1ppp/2n5/2b1p3/2B1P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 5 4"),
    ("Mid-open",     "r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 4 4"),
    ("Hanging queen", "rnb1kbnr/pppp1ppp/8/4p1q1/3P4/2N5/PPP1PPPP/R1BQKBNR b KQkq - 0 3"),
    ("In check",     "rnbqkbnr/ppp2ppp/8/1B1pp3/4P3/8/PPPP1PPP/RNBQK1NR b KQkq - 1 3"),
    ("Complex mid",  "r2q1rk1/ppp2ppp/2np1n2/2b1p1B1/2B1P1b1/2NP1N2/PPP2PPP/R2Q1RK1 b - - 0 8"),
    ("Pawn ending",  "8/5pk1/6p1/7p/7P/6P1/5PK1/8 b - - 0 40"),
    ("Pawn race",    "8/1p4k1/p7/P1K5/8/8/8/8 b - - 0 45"),
]


def run_position(client: httpx.Client, endpoint: str, label: str, fen: str) -> dict:
    """
    POST one position and return metrics.

    Returns:
        Dict with keys: label, move, legal, warning, status, time_ms, eval.
    """
    board = chess.Board(fen)
    start = time.monotonic()
    try:
        response = client.post(endpoint, json={"fen": fen})
        data = response.json()
        status = response.status_code
    except (httpx.HTTPError, ValueError) as exc:
        data, status = {"error": str(exc)}, 0
    time_ms = int((time.monotonic() - start) * 1000)

    move = data.get("move") or "(none)"
    try:
        board.push_san(move)
        legal = True
    except ValueError:
        legal = False

    return {
        "label": label,
        "move": move,
        "legal": legal,
        "warning": "yes" if data.get("warning") else "",
        "status": status,
        "time_ms": time_ms,
        "eval": evaluate_board(board),
    }


def main() -> None:
    """Run all benchmark positions and print a summary table."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--url", default="http://127.0.0.1:8000")
    parser.add_argument("--endpoint", default="/api/chess-move")
    args = parser.parse_args()

    print(f"AI Chess Challenge benchmark - {args.url}{args.endpoint}")
    print()
    print(
        f"{'Position':<14} {'Move':<8} {'Legal':>5} {'Warn':>5} "
        f"{'HTTP':>5} {'Eval':>6} {'Time(ms)':>9}"
    )
    print("-" * 60)

    results = []
    with httpx.Client(base_url=args.url, timeout=60.0) as client:
        for label, fen in POSITIONS:
            r = run_position(client, args.endpoint, label, fen)
            results.append(r)
            print(
                f"{r['label']:<14} {r['move']:<8} {str(r['legal']):>5} {r['warning']:>5} "
                f"{r['status']:>5} {r['eval']:>6} {r['time_ms']:>9,}"
            )

    answered = [r for r in results if r["status"] == 200]
    if answered:
        avg_time = sum(r["time_ms"] for r in answered) // len(answered)
        legal = sum(1 for r in answered if r["legal"])
        fallbacks = sum(1 for r in answered if r["warning"])
        print("-" * 60)
        print(f"Legal moves: {legal}/{len(answered)}  Fallbacks: {fallbacks}  Avg time: {avg_time:,} ms")


if __name__ == "__main__":
    main()
