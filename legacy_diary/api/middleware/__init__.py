"""Starlette middleware and FastAPI auth dependencies."""
