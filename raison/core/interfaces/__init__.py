"""Interfaces for Raison collaborators."""
from .connection import EventSink, IConnectionBinding

__all__ = [
    "EventSink",
    "IConnectionBinding",
]
