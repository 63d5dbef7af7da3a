"""CrudBase - Configuration-driven CRUD service.

Collection definitions drive filter validation, value casting, update
command translation and the JSON Schemas of every CRUD endpoint.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
