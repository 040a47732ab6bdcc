#!/usr/bin/env python3
"""
Basic ghcache usage example.

Hydrates the cache for an organization, prints the bottom of each ranked
view, and forwards one uncached request. Set GITHUB_API_TOKEN to avoid the
anonymous rate limit.
Run with: python examples/basic_usage.py
"""

import logging

from ghcache import (
    CacheEngine,
    CacheServiceError,
    Settings,
    UpstreamClient,
    ViewKind,
    configure_logging,
)

configure_logging(level=logging.INFO)

settings = Settings.from_env()
print(f"=== ghcache for {settings.organization} ===\n")

with UpstreamClient(settings) as upstream, CacheEngine(upstream, settings) as engine:
    engine.start_sync_loop()

    try:
        engine.ensure_hydrated()
    except CacheServiceError as e:
        print(f"Hydration failed: {e}")
        raise SystemExit(1)

    organization = engine.get_organization()
    print(f"Organization: {organization['login']} ({organization.get('public_repos')} public repos)")
    print(f"Public members: {len(engine.get_members())}")
    print(f"Repositories cached: {len(engine.get_repos())}\n")

    for kind in ViewKind:
        print(f"Bottom 5 by {kind.value}:")
        for entry in engine.get_bottom_n(kind, 5):
            name, value = entry.as_pair()
            print(f"   {name}: {value}")
        print()

    # Anything outside the cached set goes straight to the upstream
    response = upstream.forward("GET", f"/orgs/{settings.organization}/teams")
    print(f"Forwarded /teams: HTTP {response.status_code}")

    report = engine.get_sync_report()
    print(f"Last sync status: {report.status_code}, last success at {report.last_success_at}")
