MODULE_ID = "email_marketing"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Email templates, campaigns with A/B tests, automated sequences and enrollments"

ROUTES = [
    "email_marketing.routes",
]

TABLES = [
    "email_templates",
    "email_campaigns",
    "email_sequences",
    "email_sequence_steps",
    "email_sequence_enrollments",
    "email_system_settings",
]

PUBLISHES = [
    "email.campaign_triggered",
    "email.sequence_processed",
]

SUBSCRIBES = []

IMPLEMENTS = ["EmailFunctionClient"]

REQUIRES = []

DAEMONS = []


def register(app, registry) -> None:
    """Register the function client provider and the email routes."""
    from core.config import settings
    from modules.email_marketing import routes
    from modules.email_marketing.functions import EmailFunctionClient

    client = EmailFunctionClient(
        settings.functions_url,
        api_key=settings.functions_api_key,
        timeout=settings.functions_timeout_seconds,
    )
    registry.register_provider("EmailFunctionClient", client)

    app.include_router(routes.router, prefix="/api")
