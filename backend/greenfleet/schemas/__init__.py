"""Input validation models for server operations."""
