"""docchat - multi-tenant document sections with semantic search."""

__version__ = "0.1.0"
