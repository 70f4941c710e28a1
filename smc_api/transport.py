"""Adapter de requests que mide la duración de cada petición."""

from __future__ import annotations

import time
from urllib.parse import urlparse

from prometheus_client import Histogram
from requests.adapters import HTTPAdapter

REQUEST_DURATION_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


def extract_endpoint(path: str) -> str:
    """Nombre lógico del endpoint a partir del path.

    /v0 -> "ping", /v0/me -> "me", /v0/devices/123 -> "devices"
    """
    parts = [p for p in path.strip("/").split("/") if p]
    parts = [p for p in parts if not (p.startswith("v") and len(p) <= 3 and p[1:].isdigit())]
    if not parts:
        return "ping"
    return parts[0]


def status_category(code: int) -> str:
    if 200 <= code < 300:
        return "2xx"
    if 400 <= code < 500:
        return "4xx"
    if code >= 500:
        return "5xx"
    return "other"


class InstrumentedAdapter(HTTPAdapter):
    """Observa `histogram{endpoint, status, method}` por cada petición enviada.

    El histograma se comparte con el registry, así que se puede observar
    desde cualquier thread que use la sesión.
    """

    def __init__(self, histogram: Histogram, **kwargs):
        self.histogram = histogram
        super().__init__(**kwargs)

    def send(self, request, **kwargs):
        start = time.perf_counter()
        endpoint = extract_endpoint(urlparse(request.url).path)
        status = "error"
        try:
            response = super().send(request, **kwargs)
            status = status_category(response.status_code)
            return response
        finally:
            self.histogram.labels(
                endpoint=endpoint, status=status, method=request.method
            ).observe(time.perf_counter() - start)
