"""Database engine, sessions and tenant-scoped handles."""
