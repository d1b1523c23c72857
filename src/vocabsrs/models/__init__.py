"""Database and data models."""
