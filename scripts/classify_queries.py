from __future__ import annotations

"""CLI smoke test for the batch classify endpoint.

Usage:
    uvicorn app.main:app --port 8000 &
    python scripts/classify_queries.py "Pr=fire door" "Ss=concrete floor slab"

Each argument is UNICLASS_TYPE=query text. Set API_BASE to target another server.
"""

import os
import sys

import httpx

API_BASE = os.getenv("API_BASE", "http://localhost:8000")
TIMEOUT = 120  # seconds for the whole batch


def _parse(arg: str) -> dict:
    uniclass_type, sep, query = arg.partition("=")
    if not sep or not query.strip():
        raise SystemExit(f"Invalid argument {arg!r}; expected TYPE=query text")
    return {"query": query.strip(), "uniclass_type": uniclass_type.strip()}


def main(args: list[str]) -> int:
    queries = [_parse(a) for a in args]
    print(f"Server  : {API_BASE}")
    print(f"Queries : {len(queries)}")
    print("-" * 60)

    response = httpx.post(
        f"{API_BASE}/api/v1/classify/batch",
        json={"queries": queries},
        timeout=TIMEOUT,
    )
    body = response.json()
    if response.status_code != 200:
        print(f"ERROR {response.status_code}: {body.get('error')} {body.get('details') or ''}")
        return 1

    for query, result in zip(queries, body["results"]):
        print(f"[{result['request_id']}] {query['query']!r}")
        print(f"     {result['match']}  (confidence {result['confidence']:.4f})")
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/classify_queries.py TYPE=query [TYPE=query ...]")
        sys.exit(1)
    sys.exit(main(sys.argv[1:]))
