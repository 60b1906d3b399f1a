from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from asset_listr.config import Settings


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email}


@dataclass(frozen=True)
class Session:
    access_token: str
    user: AuthUser
    expires_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        # The token is returned to the client once, at sign-in, never logged.
        return {"user": self.user.to_dict(), "expires_at": self.expires_at}


class PersistenceGateway(ABC):
    """Authenticated CRUD against the listing datastore.

    A gateway instance is bound to at most one session (access token).
    Every failure is raised as `GatewayError` (or a subclass); callers decide
    locally what to keep.
    """

    gateway_key: str

    @abstractmethod
    def get_session(self) -> Optional[Session]:
        raise NotImplementedError

    @abstractmethod
    def get_current_user(self) -> AuthUser:
        """Raises `NotAuthenticatedError` when there is no valid session."""

        raise NotImplementedError

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Session:
        raise NotImplementedError

    @abstractmethod
    def sign_out(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def list(
        self,
        collection: str,
        *,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def update(
        self, collection: str, record_id: str, record: Dict[str, Any]
    ) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        return None


GatewayFactory = Callable[[Settings, Optional[str]], PersistenceGateway]

_GATEWAYS: Dict[str, GatewayFactory] = {}


def register_gateway(key: str) -> Callable[[GatewayFactory], GatewayFactory]:
    norm = (key or "").strip().lower()
    if not norm:
        raise ValueError("gateway key is required")

    def _wrap(factory: GatewayFactory) -> GatewayFactory:
        _GATEWAYS[norm] = factory
        return factory

    return _wrap


def get_gateway(settings: Settings, access_token: Optional[str] = None) -> PersistenceGateway:
    key = (settings.backend or "").strip().lower()
    factory = _GATEWAYS.get(key)
    if factory is None:
        raise KeyError(f"Unknown gateway backend: {settings.backend}")
    return factory(settings, access_token)


def list_gateways() -> List[str]:
    return sorted(_GATEWAYS.keys())
