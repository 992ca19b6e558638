"""HTTP endpoint exposing the collected metrics for scraping."""

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from rpki_exporter.metrics import RpkiMetrics

METRICS_KEY = web.AppKey("metrics", RpkiMetrics)

LANDING_PAGE = """<html>
<head><title>RPKI Exporter</title></head>
<body>
<h1>RPKI Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""


async def metrics_handler(request: web.Request) -> web.Response:
    """Serve the current metrics snapshot in Prometheus text format."""
    metrics = request.app[METRICS_KEY]
    return web.Response(
        body=generate_latest(metrics.registry),
        headers={"Content-Type": CONTENT_TYPE_LATEST},
    )


def create_app(metrics: RpkiMetrics, metrics_path: str = "/metrics") -> web.Application:
    """Build the exporter web application.

    Args:
        metrics: Metrics whose registry is exposed.
        metrics_path: Path serving the metrics.

    Returns:
        aiohttp Application with the metrics path and a "/" landing page.
    """
    app = web.Application()
    app[METRICS_KEY] = metrics

    landing = LANDING_PAGE.format(metrics_path=metrics_path)

    async def index_handler(request: web.Request) -> web.Response:
        return web.Response(text=landing, content_type="text/html")

    app.router.add_get(metrics_path, metrics_handler)
    if metrics_path != "/":
        app.router.add_get("/", index_handler)
    return app
