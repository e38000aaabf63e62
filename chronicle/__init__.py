"""Chronicle: attributable audit trails for async Python services.

Records who did what, buffers the records per unit of work, and persists
them to PostgreSQL, Redis or memory, optionally inside the same database
transaction as the change being audited.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
