"""Realtime websocket adapters."""
from .socketio_connection import SocketIOConnection

__all__ = ["SocketIOConnection"]
