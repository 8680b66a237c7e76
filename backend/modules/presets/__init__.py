MODULE_ID = "presets"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Reusable maintenance item and maintenance type presets for job line entry"

ROUTES = [
    "presets.routes",
]

TABLES = [
    "maintenance_item_presets",
    "maintenance_type_presets",
]

PUBLISHES = []

SUBSCRIBES = []

IMPLEMENTS = []

REQUIRES = []

DAEMONS = []


def register(app, registry) -> None:
    """Register the presets module routes."""
    from modules.presets import routes

    app.include_router(routes.router, prefix="/api")
