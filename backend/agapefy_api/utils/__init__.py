"""
Utility modules for the application.
"""

from .json_encoder import ApplicationJSONEncoder, safe_json_dumps, safe_json_loads

__all__ = [
    'ApplicationJSONEncoder',
    'safe_json_dumps',
    'safe_json_loads'
]
