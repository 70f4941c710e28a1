from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST

from common.config import load_app_config

from .bootstrap import Runtime, build_runtime, connect

logger = logging.getLogger(__name__)

INDEX_HTML = """<html>
<head><title>SmartCitizen Exporter</title></head>
<body>
<h1>Prometheus Exporter for SmartCitizen devices</h1>
<p><a href="/metrics">Metrics</a></p>
<p>Metrics are dynamically registered and updated</p>
</body>
</html>"""


def create_app(runtime: Optional[Runtime] = None, start_exporter: bool = True) -> FastAPI:
    """App de exposición.

    Sin runtime, el lifespan lo construye desde la configuración y autentica
    contra la API; un error de configuración aborta el arranque.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        rt = runtime
        if rt is None:
            rt = build_runtime(load_app_config())
            connect(rt)
        app.state.runtime = rt

        if start_exporter:
            rt.exporter.start(rt.config.poll_interval_seconds)
        try:
            yield
        finally:
            if start_exporter:
                rt.exporter.stop()

    app = FastAPI(title="SmartCitizen Exporter", version="0.1.0", lifespan=lifespan)

    @app.get("/metrics")
    def metrics(request: Request) -> Response:
        rt: Runtime = request.app.state.runtime
        return Response(content=rt.registry.exposition(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    def health():
        """Liveness probe."""
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    def index():
        return INDEX_HTML

    return app


app = create_app()
