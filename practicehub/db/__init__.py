"""Persistence layer: declarative base, engine and session helpers."""
