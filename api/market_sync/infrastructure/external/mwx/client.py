"""
Cliente HTTP de la fuente externa (httpx async).

Requisitos cubiertos:
- paginacion 1-based con tamaño de pagina acotado a [1, SYNC_MAX_LIMIT]
- autenticacion por endpoint (x-api-key, token back-office, token estatico)
- 401 en endpoints con token: un unico handshake y un unico reintento
- errores de red, HTTP, body vacio/no JSON o envelope invalido -> SourceFetchError
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

import httpx
from loguru import logger

from market_sync.core.config import Settings
from market_sync.shared.exceptions.sync import SourceFetchError, SyncConfigError

from .auth import MwxAuthenticator
from .endpoints import build_endpoints
from .types import AuthMode, SourceEndpoint, SourcePage, SourceQuery


class MwxSourceClient:
    """
    Lector paginado de la fuente. No escribe nada en el storage.

    El `httpx.AsyncClient` se inyecta (MockTransport en tests); si se crea
    internamente, `aclose()` lo cierra.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        endpoints: Mapping[str, SourceEndpoint],
        *,
        api_key: str = "",
        static_token: str = "",
        authenticator: Optional[MwxAuthenticator] = None,
        max_page_size: int = 3000,
        owns_http: bool = False,
    ) -> None:
        self._http = http
        self._endpoints = dict(endpoints)
        self._api_key = api_key
        self._static_token = static_token
        self._authenticator = authenticator
        self._max_page_size = max_page_size
        self._owns_http = owns_http

    @classmethod
    def from_settings(
        cls, settings: Settings, http: Optional[httpx.AsyncClient] = None
    ) -> "MwxSourceClient":
        owns_http = http is None
        http = http or httpx.AsyncClient(timeout=settings.SOURCE_TIMEOUT_S)
        return cls(
            http,
            build_endpoints(settings),
            api_key=settings.MWX_API_KEY,
            static_token=settings.CREDIT_MANAGER_TOKEN,
            authenticator=MwxAuthenticator.from_settings(http, settings),
            max_page_size=settings.SYNC_MAX_LIMIT,
            owns_http=owns_http,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def endpoint(self, name: str) -> SourceEndpoint:
        try:
            return self._endpoints[name]
        except KeyError as e:
            raise SyncConfigError(f"Endpoint de fuente desconocido: {name}") from e

    def clamp_page_size(self, page_size: Optional[int], endpoint: SourceEndpoint) -> int:
        size = page_size if page_size else endpoint.default_page_size
        return max(1, min(int(size), self._max_page_size))

    async def fetch_page(
        self,
        endpoint: Union[str, SourceEndpoint],
        page: int,
        query: Optional[SourceQuery] = None,
        page_size: Optional[int] = None,
    ) -> SourcePage:
        """
        Trae una pagina de registros crudos.

        Args:
            endpoint: nombre o descriptor del endpoint
            page: numero de pagina (1-based; valores < 1 se tratan como 1)
            query: filtro de la corrida
            page_size: tamaño pedido (se acota a [1, max_page_size])

        Returns:
            SourcePage con los registros y los totales reportados por la fuente
        """
        ep = self.endpoint(endpoint) if isinstance(endpoint, str) else endpoint
        page = max(1, int(page or 1))
        size = self.clamp_page_size(page_size, ep)
        payload = ep.build_request(page, size, query or SourceQuery())

        resp = await self._send(ep, payload)

        if resp.status_code == 401 and ep.auth_mode is AuthMode.TOKEN and self._authenticator:
            logger.warning(
                f"[{ep.name}] 401 en pagina {page}; re-autenticando y reintentando una vez"
            )
            await self._authenticator.reauthenticate()
            resp = await self._send(ep, payload)

        if not 200 <= resp.status_code < 300:
            raise SourceFetchError(
                f"[{ep.name}] la fuente respondio HTTP {resp.status_code}",
                http_status=resp.status_code,
                body=resp.text,
                endpoint=ep.name,
            )

        text = resp.text
        if not text or not text.strip():
            raise SourceFetchError(
                f"[{ep.name}] la fuente respondio un body vacio",
                http_status=resp.status_code,
                body=text,
                endpoint=ep.name,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise SourceFetchError(
                f"[{ep.name}] la fuente respondio un body no JSON",
                http_status=resp.status_code,
                body=text,
                endpoint=ep.name,
            ) from e

        try:
            envelope = ep.extract(data)
        except ValueError as e:
            raise SourceFetchError(
                f"[{ep.name}] envelope invalido: {e}",
                http_status=resp.status_code,
                body=text,
                endpoint=ep.name,
            ) from e

        return SourcePage(
            records=tuple(envelope.records),
            page=page,
            page_size=size,
            total_count=envelope.total_count,
            total_pages=envelope.total_pages,
            current_page=envelope.current_page,
        )

    async def _send(self, endpoint: SourceEndpoint, payload: Dict[str, Any]) -> httpx.Response:
        headers = await self._headers(endpoint)
        try:
            if endpoint.method.upper() == "GET":
                return await self._http.get(endpoint.url, params=payload, headers=headers)
            return await self._http.request(
                endpoint.method.upper(), endpoint.url, json=payload, headers=headers
            )
        except httpx.HTTPError as e:
            raise SourceFetchError(
                f"[{endpoint.name}] error de red: {e}", endpoint=endpoint.name
            ) from e

    async def _headers(self, endpoint: SourceEndpoint) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "accept": "application/json"}

        if endpoint.auth_mode is AuthMode.API_KEY:
            if not self._api_key:
                raise SyncConfigError("MWX_API_KEY no esta configurada")
            headers["x-api-key"] = self._api_key
        elif endpoint.auth_mode is AuthMode.STATIC_TOKEN:
            if not self._static_token:
                raise SyncConfigError("CREDIT_MANAGER_TOKEN no esta configurado")
            headers["Authorization"] = self._static_token
            headers["X-API-KEY"] = self._static_token
        elif endpoint.auth_mode is AuthMode.TOKEN:
            if self._authenticator is None:
                raise SyncConfigError(f"El endpoint {endpoint.name} requiere autenticador")
            token = await self._authenticator.get_token()
            headers["token"] = token
            headers["cookie"] = f"token={token}; logged_in=1"

        headers.update(endpoint.extra_headers)
        return headers
