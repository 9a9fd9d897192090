"""
WebSocket fan-out of location events.
"""

from .connection_manager import ConnectionManager, manager

__all__ = [
    'ConnectionManager',
    'manager'
]
