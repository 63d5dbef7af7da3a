"""FastAPI application and helper routes."""
