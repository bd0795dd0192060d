"""API gateway: the FastAPI application."""
