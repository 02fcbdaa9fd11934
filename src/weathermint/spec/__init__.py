"""Data models and JSON schemas for weather observations and token metadata."""
