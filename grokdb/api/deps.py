"""FastAPI dependencies."""

from fastapi import Request

from grokdb.database import Store


def get_store(request: Request) -> Store:
    """Return the store created in the application lifespan."""
    return request.app.state.store
