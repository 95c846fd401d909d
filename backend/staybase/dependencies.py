"""FastAPI dependencies shared by the route modules."""

from fastapi import Request

from staybase.errors import ConfigurationError
from staybase.services.queries import PropertyQueryService


def get_query_service(request: Request) -> PropertyQueryService:
    """Return the query service created in the application lifespan."""
    service = getattr(request.app.state, "query_service", None)
    if service is None:
        raise ConfigurationError("Query service is not initialized. Start the app with its lifespan.")
    return service
