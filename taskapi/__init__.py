"""taskapi - CRUD REST API for task records."""

__version__ = "1.0.0"
