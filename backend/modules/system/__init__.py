MODULE_ID = "system"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Health endpoints and the background health monitor"

ROUTES = [
    "system.routes_health",
]

TABLES = []

PUBLISHES = [
    "system.health_changed",
]

SUBSCRIBES = []

IMPLEMENTS = []

REQUIRES = ["EmailFunctionClient"]

DAEMONS = ["system.monitor.HealthMonitor"]


def register(app, registry) -> None:
    """Register health routes and build the health monitor the lifespan starts."""
    from core.config import settings
    from core.db import ping
    from modules.system import routes_health
    from modules.system.monitor import HealthMonitor

    checks = {"database": ping}
    client = registry.get_provider("EmailFunctionClient")
    if client is not None and client.configured:
        checks["email_functions"] = client.health_check
    app.state.health_monitor = HealthMonitor(checks, interval=settings.health_check_interval_seconds)

    # /health for load balancers, /api/health for the UI
    app.include_router(routes_health.router)
    app.include_router(routes_health.router, prefix="/api")
