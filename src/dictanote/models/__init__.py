"""Data models for Dictanote."""
