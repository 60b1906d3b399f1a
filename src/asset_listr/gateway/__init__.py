"""Persistence gateways.

Importing this package registers the builtin backends.
"""

from .base import AuthUser, PersistenceGateway, Session, get_gateway, list_gateways, register_gateway
from .sqlite import SQLiteGateway
from .supabase import SupabaseGateway

__all__ = [
    "AuthUser",
    "PersistenceGateway",
    "SQLiteGateway",
    "Session",
    "SupabaseGateway",
    "get_gateway",
    "list_gateways",
    "register_gateway",
]
