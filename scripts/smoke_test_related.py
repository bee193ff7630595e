#!/usr/bin/env python3
"""Post-deployment smoke test for the related-articles API.

Checks that the service is up, that /articles/{id}/related returns a
well-formed hybrid result within bounds, and that a second request (served
from cache) returns the same ordering.

Usage:
    python scripts/smoke_test_related.py \\
        --url https://related-api.example.com \\
        --article-id 42 \\
        [--admin-key SECRET]   # also flushes the entry first for a cold read
"""
import argparse
import sys
import time

import requests

EXPECTED_WEIGHTS = {"category": 0.4, "tags": 0.3, "content": 0.3}
MIN_RESULTS = 3
MAX_RESULTS = 6


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _ts() -> str:
    return time.strftime("[%H:%M:%S]")


def _log(msg: str) -> None:
    print(f"{_ts()} {msg}", flush=True)


def _err(msg: str) -> None:
    print(f"{_ts()} ERROR: {msg}", file=sys.stderr, flush=True)


# ---------------------------------------------------------------------------
# API calls
# ---------------------------------------------------------------------------

def get_health(url: str) -> dict:
    resp = requests.get(f"{url}/health", timeout=10)
    resp.raise_for_status()
    return resp.json()


def flush_entry(url: str, key: str, article_id: int) -> None:
    """DELETE /admin/related-cache/{id}: forces the next read to recompute."""
    resp = requests.delete(
        f"{url}/admin/related-cache/{article_id}",
        headers={"X-Admin-Key": key},
        timeout=15,
    )
    resp.raise_for_status()


def get_related(url: str, article_id: int) -> tuple[dict, float]:
    started = time.time()
    resp = requests.get(f"{url}/articles/{article_id}/related", timeout=30)
    elapsed = time.time() - started
    resp.raise_for_status()
    return resp.json(), elapsed


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def check_shape(data: dict, article_id: int) -> list[str]:
    problems = []
    articles = data.get("articles")
    count = data.get("count")
    meta = data.get("meta") or {}

    if not isinstance(articles, list):
        return ["'articles' is not a list"]
    if count != len(articles):
        problems.append(f"count={count} but {len(articles)} articles returned")
    if len(articles) > MAX_RESULTS:
        problems.append(f"{len(articles)} articles exceeds max {MAX_RESULTS}")
    if 0 < len(articles) < MIN_RESULTS:
        _log(f"  note: only {len(articles)} related articles (small store?)")
    if meta.get("algorithm") != "hybrid":
        problems.append(f"meta.algorithm={meta.get('algorithm')!r}, expected 'hybrid'")
    if meta.get("weights") != EXPECTED_WEIGHTS:
        problems.append(f"meta.weights={meta.get('weights')}, expected {EXPECTED_WEIGHTS}")

    ids = [a.get("id") for a in articles]
    if article_id in ids:
        problems.append("source article returned as its own related article")
    if len(set(ids)) != len(ids):
        problems.append(f"duplicate ids in result: {ids}")

    relevance = [a["relevance_score"] for a in articles if a.get("match") == "relevance"]
    if relevance != sorted(relevance, reverse=True):
        problems.append(f"relevance scores not non-increasing: {relevance}")
    for a in articles:
        if not 0.0 <= a.get("relevance_score", -1) <= 1.0:
            problems.append(f"article {a.get('id')} score out of range: {a.get('relevance_score')}")
    return problems


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--url", required=True, help="Base URL of the API")
    parser.add_argument("--article-id", type=int, required=True, help="A published article id")
    parser.add_argument("--admin-key", default="", help="Admin key; flushes the entry before the cold read")
    args = parser.parse_args()
    url = args.url.rstrip("/")

    _log(f"Health check {url}/health")
    try:
        health = get_health(url)
    except requests.RequestException as exc:
        _err(f"health check failed: {exc}")
        return 1
    _log(f"  {health}")

    if args.admin_key:
        _log(f"Flushing cache entry for article {args.article_id}")
        flush_entry(url, args.admin_key, args.article_id)

    try:
        cold, cold_s = get_related(url, args.article_id)
        warm, warm_s = get_related(url, args.article_id)
    except requests.HTTPError as exc:
        _err(f"related request failed: {exc}")
        return 1

    _log(f"Cold read: {cold['count']} articles in {cold_s * 1000:.0f} ms")
    _log(f"Warm read: {warm['count']} articles in {warm_s * 1000:.0f} ms")

    problems = check_shape(cold, args.article_id)
    if [a["id"] for a in cold["articles"]] != [a["id"] for a in warm["articles"]]:
        problems.append("cached ordering differs from computed ordering")

    if problems:
        for p in problems:
            _err(p)
        return 1

    for a in cold["articles"]:
        _log(f"  #{a['id']:<6} {a['relevance_score']:.4f} {a['match']:<10} {a['title'][:60]}")
    _log("Smoke test passed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
