from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

REGISTRY_KEY = web.AppKey('registry', CollectorRegistry)


def create_web_app(monitor, registry: CollectorRegistry) -> web.Application:
    app = web.Application()
    app[REGISTRY_KEY] = registry
    app.router.add_get('/health', monitor.health_check_handler)
    app.router.add_get('/metrics', metrics_handler)
    return app


async def metrics_handler(request):
    metrics_data = generate_latest(request.app[REGISTRY_KEY])
    return web.Response(
        body=metrics_data,
        headers={'Content-Type': CONTENT_TYPE_LATEST}
    )
