"""Role-based access control: role catalogs, scope resolution and request guards."""

__version__ = "0.1.0"

__all__ = ["__version__"]
