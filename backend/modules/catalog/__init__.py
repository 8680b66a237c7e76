MODULE_ID = "catalog"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Shopping catalog: product categories and products"

ROUTES = [
    "catalog.routes",
]

TABLES = [
    "product_categories",
    "products",
]

PUBLISHES = []

SUBSCRIBES = []

IMPLEMENTS = []

REQUIRES = []

DAEMONS = []


def register(app, registry) -> None:
    """Register the catalog module routes."""
    from modules.catalog import routes

    app.include_router(routes.router, prefix="/api")
