from __future__ import annotations
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest


def attach_prometheus_endpoint(app: FastAPI, path: str = "/metrics", *,
                               registry: CollectorRegistry = REGISTRY) -> None:
    """Expose *registry* in the Prometheus text format at *path*; idempotent per path."""
    name = f"core_metrics:{path}"
    if any(getattr(r, "name", None) == name for r in app.router.routes):
        return

    def scrape() -> Response:
        return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    app.add_api_route(path, scrape, methods=["GET"], name=name, include_in_schema=False)
