"""
Router dependencies
"""

from fastapi import HTTPException

from app.services.container import ServiceContainer, get_container


def get_services() -> ServiceContainer:
    """
    Dependency for the shared service container.

    Raises 503 when the database is not configured.
    """
    try:
        return get_container()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
