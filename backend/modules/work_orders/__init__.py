MODULE_ID = "work_orders"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Work orders, job lines, parts and the assembled work order view"

ROUTES = [
    "work_orders.routes",
]

TABLES = [
    "work_orders",
    "work_order_job_lines",
    "work_order_parts",
]

PUBLISHES = [
    "work_order.created",
    "work_order.updated",
    "work_order.deleted",
    "job_line.changed",
    "part.changed",
]

SUBSCRIBES = []

IMPLEMENTS = []

REQUIRES = []

DAEMONS = []


def register(app, registry) -> None:
    """Register the work orders module routes."""
    from modules.work_orders import routes

    app.include_router(routes.router, prefix="/api")
