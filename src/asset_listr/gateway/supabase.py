from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from asset_listr.config import Settings
from asset_listr.exceptions import GatewayError, NotAuthenticatedError, RecordNotFoundError

from .base import AuthUser, PersistenceGateway, Session, register_gateway


logger = logging.getLogger("asset_listr.gateway")


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error_description", "msg", "error"):
            value = body.get(key)
            if value:
                return str(value)
    text = (resp.text or "").strip()
    return text[:300] or f"HTTP {resp.status_code}"


def _json_rows(resp: requests.Response) -> List[Dict[str, Any]]:
    if not resp.content:
        return []
    try:
        body = resp.json()
    except ValueError as e:
        raise GatewayError("backend returned a non-JSON body", status_code=resp.status_code) from e
    if isinstance(body, dict):
        return [body]
    return list(body or [])


def _user_from_payload(payload: Dict[str, Any]) -> AuthUser:
    uid = str(payload.get("id") or "").strip()
    if not uid:
        raise GatewayError("auth response did not include a user id")
    return AuthUser(id=uid, email=payload.get("email"))


class SupabaseGateway(PersistenceGateway):
    """Hosted backend: GoTrue auth API + PostgREST data API over HTTPS.

    No retries: a failed request surfaces once to the caller.
    """

    gateway_key = "supabase"

    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        access_token: Optional[str] = None,
        timeout: float = 10.0,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token or None
        self.timeout = timeout
        self.http = http or requests.Session()
        self._user: Optional[AuthUser] = None

    def close(self) -> None:
        self.http.close()

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        try:
            resp = self.http.request(
                method,
                f"{self.url}{path}",
                params=params,
                json=json_body,
                headers=self._headers(headers),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise GatewayError(f"Request to backend failed: {e}") from e
        logger.debug("%s %s -> %s", method, path, resp.status_code)
        return resp

    def _raise_for_status(self, resp: requests.Response) -> None:
        if resp.status_code < 400:
            return
        raise GatewayError(_error_message(resp), status_code=resp.status_code)

    # -- auth -------------------------------------------------------------

    def get_session(self) -> Optional[Session]:
        if not self.access_token:
            return None
        try:
            user = self.get_current_user()
        except NotAuthenticatedError:
            return None
        return Session(access_token=self.access_token, user=user)

    def get_current_user(self) -> AuthUser:
        if not self.access_token:
            raise NotAuthenticatedError()
        if self._user is not None:
            return self._user
        resp = self._request("GET", "/auth/v1/user")
        if resp.status_code in (401, 403):
            raise NotAuthenticatedError()
        self._raise_for_status(resp)
        self._user = _user_from_payload(resp.json() or {})
        return self._user

    def sign_in(self, email: str, password: str) -> Session:
        resp = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json_body={"email": email, "password": password},
        )
        if resp.status_code in (400, 401):
            raise NotAuthenticatedError(_error_message(resp))
        self._raise_for_status(resp)
        payload = resp.json() or {}
        token = str(payload.get("access_token") or "")
        if not token:
            raise GatewayError("sign-in response did not include an access token")
        self.access_token = token
        self._user = _user_from_payload(payload.get("user") or {})
        expires_at = payload.get("expires_at")
        return Session(
            access_token=token,
            user=self._user,
            expires_at=int(expires_at) if expires_at is not None else None,
        )

    def sign_out(self) -> None:
        if not self.access_token:
            return
        try:
            resp = self._request("POST", "/auth/v1/logout")
            # An already-expired token is as good as signed out.
            if resp.status_code not in (401, 403, 404):
                self._raise_for_status(resp)
        finally:
            self.access_token = None
            self._user = None

    # -- data -------------------------------------------------------------

    def list(
        self,
        collection: str,
        *,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[Dict[str, Any]]:
        direction = "desc" if descending else "asc"
        resp = self._request(
            "GET",
            f"/rest/v1/{collection}",
            params={"select": "*", "order": f"{order_by}.{direction}"},
        )
        self._raise_for_status(resp)
        return _json_rows(resp)

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._request(
            "POST",
            f"/rest/v1/{collection}",
            json_body=[record],
            headers={"Prefer": "return=representation"},
        )
        self._raise_for_status(resp)
        rows = _json_rows(resp)
        if not rows:
            raise GatewayError(f"insert into {collection} returned no row")
        return rows[0]

    def update(
        self, collection: str, record_id: str, record: Dict[str, Any]
    ) -> Dict[str, Any]:
        resp = self._request(
            "PATCH",
            f"/rest/v1/{collection}",
            params={"id": f"eq.{record_id}"},
            json_body=record,
            headers={"Prefer": "return=representation"},
        )
        self._raise_for_status(resp)
        rows = _json_rows(resp)
        if not rows:
            raise RecordNotFoundError(collection, record_id)
        return rows[0]

    def delete(self, collection: str, record_id: str) -> None:
        resp = self._request(
            "DELETE",
            f"/rest/v1/{collection}",
            params={"id": f"eq.{record_id}"},
            headers={"Prefer": "return=representation"},
        )
        self._raise_for_status(resp)
        rows = _json_rows(resp)
        if not rows:
            raise RecordNotFoundError(collection, record_id)


@register_gateway("supabase")
def _build(settings: Settings, access_token: Optional[str]) -> PersistenceGateway:
    return SupabaseGateway(
        settings.supabase_url,
        settings.supabase_anon_key,
        access_token=access_token,
        timeout=settings.http_timeout,
    )
