MODULE_ID = "equipment"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Shop equipment and customer-owned assets"

ROUTES = [
    "equipment.routes",
]

TABLES = [
    "equipment_assets",
]

PUBLISHES = []

SUBSCRIBES = []

IMPLEMENTS = []

REQUIRES = []

DAEMONS = []


def register(app, registry) -> None:
    """Register the equipment module routes."""
    from modules.equipment import routes

    app.include_router(routes.router, prefix="/api")
