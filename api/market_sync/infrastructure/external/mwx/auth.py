"""
Handshake de autenticacion contra los servicios MWX.

Dos pasos:
1. Token de aplicacion (`/auth-service/token/auth`) con app_name/app_key.
2. Login back-office con identifier/password y el token del paso 1 en el
   header `token`. El token de sesion devuelto reemplaza al de aplicacion.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from market_sync.core.config import Settings
from market_sync.shared.exceptions.sync import SourceAuthError

from .endpoints import SUCCESS_CODE


class MwxAuthenticator:
    """
    Mantiene el token de sesion back-office en memoria.

    No reintenta: cada llamada a `reauthenticate()` hace exactamente un
    handshake y levanta SourceAuthError si cualquiera de los pasos falla.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        base_url: str,
        token_path: str,
        login_path: str,
        app_name: str,
        app_key: str,
        device_id: str,
        device_type: str,
        identifier: str,
        password: str,
        initial_token: Optional[str] = None,
    ) -> None:
        self._http = http
        self._token_url = f"{base_url.rstrip('/')}{token_path}"
        self._login_url = f"{base_url.rstrip('/')}{login_path}"
        self._app_name = app_name
        self._app_key = app_key
        self._device_id = device_id
        self._device_type = device_type
        self._identifier = identifier
        self._password = password
        self._token = initial_token

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient, settings: Settings) -> "MwxAuthenticator":
        return cls(
            http,
            base_url=settings.MWX_API_BASE_URL,
            token_path=settings.MWX_AUTH_TOKEN_PATH,
            login_path=settings.MWX_BACK_OFFICE_LOGIN_PATH,
            app_name=settings.MWX_APP_NAME,
            app_key=settings.MWX_APP_KEY,
            device_id=settings.MWX_DEVICE_ID,
            device_type=settings.MWX_DEVICE_TYPE,
            identifier=settings.MWX_IDENTIFIER,
            password=settings.MWX_PASSWORD,
        )

    async def get_token(self) -> str:
        """Token vigente; si no hay, hace el handshake completo."""
        if not self._token:
            return await self.reauthenticate()
        return self._token

    async def reauthenticate(self) -> str:
        """Ejecuta el handshake completo y retorna el nuevo token de sesion."""
        logger.info("Renovando autenticacion contra la fuente (token de app + login back-office)")

        app_token = await self._request_token(
            self._token_url,
            {
                "app_name": self._app_name,
                "app_key": self._app_key,
                "device_id": self._device_id,
                "device_type": self._device_type,
                "ip_address": "0.0.0.0",
            },
            headers={},
            step="token de aplicacion",
        )
        session_token = await self._request_token(
            self._login_url,
            {"identifier": self._identifier, "password": self._password},
            headers={"token": app_token},
            step="login back-office",
        )

        self._token = session_token
        logger.success("Autenticacion contra la fuente renovada")
        return session_token

    async def _request_token(
        self,
        url: str,
        body: Dict[str, Any],
        *,
        headers: Dict[str, str],
        step: str,
    ) -> str:
        try:
            resp = await self._http.post(url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise SourceAuthError(f"Fallo de red en {step}: {e}", endpoint=url) from e

        if not 200 <= resp.status_code < 300:
            raise SourceAuthError(
                f"{step} respondio HTTP {resp.status_code}",
                http_status=resp.status_code,
                body=resp.text,
                endpoint=url,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise SourceAuthError(
                f"{step} devolvio un body no JSON",
                http_status=resp.status_code,
                body=resp.text,
                endpoint=url,
            ) from e

        response = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(response, dict) or str(response.get("code")) != SUCCESS_CODE:
            message = response.get("message_en") if isinstance(response, dict) else None
            raise SourceAuthError(
                f"{step} rechazado: {message or 'respuesta inesperada'}",
                http_status=resp.status_code,
                body=resp.text,
                endpoint=url,
            )

        data = response.get("data")
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise SourceAuthError(
                f"{step} no devolvio token",
                http_status=resp.status_code,
                body=resp.text,
                endpoint=url,
            )
        return str(token)
