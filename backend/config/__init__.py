"""
Configuration module for the remote API and the allocation engine.
"""
from .settings import Settings, get_settings

__all__ = [
    'Settings',
    'get_settings',
]
