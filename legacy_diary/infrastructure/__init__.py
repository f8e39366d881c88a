"""Database, schema and environment settings."""
