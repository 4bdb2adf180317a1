"""Typed HTTP client for the business manager API.

This is the contract a frontend drives: it holds the bearer credential
explicitly, attaches it to every request, and forgets it on logout or when
the server answers 401. Nothing is revoked server-side.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from bizmanager.models import (
    DynamicField,
    Interaction,
    Person,
    PersonStatus,
    StatusCategory,
    Tag,
    TagUsage,
    TokenResponse,
    User,
)

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Non-2xx answer from the API, carrying the decoded error body."""

    def __init__(self, status_code: int, detail: str, *, code: Optional[str] = None, errors: Optional[List[str]] = None) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.code = code
        self.errors = errors or []


class BizManagerClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "BizManagerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    # Session -----------------------------------------------------------

    async def register(self, email: str, password: str, name: Optional[str] = None) -> TokenResponse:
        data = await self._request("POST", "/auth/register", json={"email": email, "password": password, "name": name})
        session = TokenResponse.model_validate(data)
        self.token = session.token
        return session

    async def login(self, email: str, password: str) -> TokenResponse:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        session = TokenResponse.model_validate(data)
        self.token = session.token
        return session

    async def logout(self) -> None:
        try:
            await self._request("POST", "/auth/logout")
        finally:
            self.token = None

    async def me(self) -> User:
        return User.model_validate(await self._request("GET", "/auth/me"))

    async def request_password_reset(self, email: str) -> str:
        data = await self._request("POST", "/auth/password-reset/request", json={"email": email})
        return data["message"]

    async def reset_password(self, token: str, new_password: str) -> str:
        data = await self._request(
            "POST",
            "/auth/password-reset/confirm",
            json={"token": token, "newPassword": new_password},
        )
        return data["message"]

    # People ------------------------------------------------------------

    async def list_people(
        self,
        status: StatusCategory | PersonStatus | str = StatusCategory.ALL,
        *,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[Person], int]:
        params = _compact(
            {
                "status": getattr(status, "value", status),
                "search": search,
                "sort": sort,
                "page": page,
                "limit": limit,
            }
        )
        response = await self._send("GET", "/people", params=params)
        people = [Person.model_validate(item) for item in response.json()]
        return people, int(response.headers.get("X-Total-Count", len(people)))

    async def get_person(self, person_id: str) -> Person:
        return Person.model_validate(await self._request("GET", f"/people/{person_id}"))

    async def create_person(self, payload: Dict[str, Any]) -> Person:
        return Person.model_validate(await self._request("POST", "/people", json=payload))

    async def update_person(self, person_id: str, patch: Dict[str, Any]) -> Person:
        return Person.model_validate(await self._request("PATCH", f"/people/{person_id}", json=patch))

    async def delete_person(self, person_id: str) -> None:
        await self._request("DELETE", f"/people/{person_id}")

    async def add_field(self, person_id: str, field: Dict[str, Any]) -> DynamicField:
        return DynamicField.model_validate(await self._request("POST", f"/people/{person_id}/fields", json=field))

    async def remove_field(self, field_id: str) -> None:
        await self._request("DELETE", f"/people/fields/{field_id}")

    # Interactions and tags --------------------------------------------

    async def list_interactions(self, **filters: Any) -> List[Interaction]:
        data = await self._request("GET", "/interactions", params=_compact(filters))
        return [Interaction.model_validate(item) for item in data]

    async def log_interaction(self, payload: Dict[str, Any]) -> Interaction:
        return Interaction.model_validate(await self._request("POST", "/interactions", json=payload))

    async def list_tags(self, search: Optional[str] = None) -> List[Tag]:
        data = await self._request("GET", "/tags", params=_compact({"search": search}))
        return [Tag.model_validate(item) for item in data]

    async def create_tag(self, name: str, **extra: Any) -> Tag:
        return Tag.model_validate(await self._request("POST", "/tags", json={"name": name, **extra}))

    async def top_tags(self, limit: int = 10) -> List[TagUsage]:
        data = await self._request("GET", "/tags/top", params={"limit": limit})
        return [TagUsage.model_validate(item) for item in data]

    # Transport ---------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._send(method, path, **kwargs)
        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        return response.json()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = await self._client.request(method, path, headers=headers, **kwargs)

        if response.is_success:
            return response
        if response.status_code == httpx.codes.UNAUTHORIZED and self.token:
            logger.info("Session rejected by server; discarding token")
            self.token = None
        raise _api_error(response)


def _api_error(response: httpx.Response) -> APIError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return APIError(
        response.status_code,
        str(body.get("detail") or response.reason_phrase),
        code=body.get("code"),
        errors=body.get("errors"),
    )


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}
