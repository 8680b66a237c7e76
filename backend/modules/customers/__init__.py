MODULE_ID = "customers"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Customers and their vehicles"

ROUTES = [
    "customers.routes",
]

TABLES = [
    "customers",
    "vehicles",
]

PUBLISHES = []

SUBSCRIBES = []

IMPLEMENTS = []

REQUIRES = []

DAEMONS = []


def register(app, registry) -> None:
    """Register the customers module routes."""
    from modules.customers import routes

    app.include_router(routes.router, prefix="/api")
