"""Application services backed by direct database access."""
