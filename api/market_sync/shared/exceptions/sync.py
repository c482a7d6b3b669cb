"""
Excepciones del pipeline de sincronizacion.

Taxonomia:
- SourceFetchError: fallo hablando con la API externa (fatal para la corrida).
- SourceAuthError: fallo del handshake de re-autenticacion (fatal).
- MissingIdentifierError: registro sin identificador (por registro, se cuenta y se omite).
- UpsertError: fallo escribiendo un registro o un hijo (por registro, no aborta hermanos).
- DuplicateInRunError: identificador ya procesado en la corrida (informativo).
- SyncConfigError: configuracion/credenciales faltantes.
"""
from typing import Any, Optional

from market_sync.shared.exceptions.base import AppException


# Cantidad de caracteres del body crudo que se conservan para diagnostico
BODY_PREFIX_LENGTH = 500


class SourceFetchError(AppException):
    """Error de red, HTTP o parseo al consultar la fuente externa."""

    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        body: Optional[str] = None,
        endpoint: Optional[str] = None,
        error_code: str = "SOURCE_FETCH_ERROR",
    ):
        self.http_status = http_status
        self.body_prefix = (body or "")[:BODY_PREFIX_LENGTH]
        self.endpoint = endpoint
        super().__init__(
            message=message,
            status_code=502,
            error_code=error_code,
            details={
                "http_status": http_status,
                "body_prefix": self.body_prefix,
                "endpoint": endpoint,
            },
        )


class SourceAuthError(SourceFetchError):
    """El handshake de re-autenticacion contra la fuente fallo."""

    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        body: Optional[str] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            http_status=http_status,
            body=body,
            endpoint=endpoint,
            error_code="SOURCE_AUTH_ERROR",
        )


class MissingIdentifierError(AppException):
    """Registro de la fuente sin identificador unico."""

    def __init__(self, kind: str, field: str = "guid"):
        self.kind = kind
        super().__init__(
            message=f"{kind} sin identificador '{field}', registro omitido",
            status_code=422,
            error_code="MISSING_IDENTIFIER",
            details={"kind": kind, "field": field},
        )


class UpsertError(AppException):
    """Fallo al escribir un registro (o un hijo) en la base de datos."""

    def __init__(self, kind: str, guid: Optional[str], reason: Any):
        self.kind = kind
        self.guid = guid
        super().__init__(
            message=f"Error guardando {kind} {guid}: {reason}",
            status_code=500,
            error_code="UPSERT_ERROR",
            details={"kind": kind, "guid": guid},
        )


class DuplicateInRunError(AppException):
    """El identificador ya fue procesado en esta corrida."""

    def __init__(self, guid: str):
        self.guid = guid
        super().__init__(
            message=f"Identificador {guid} duplicado en la corrida, omitido",
            status_code=409,
            error_code="DUPLICATE_IN_RUN",
            details={"guid": guid},
        )


class SyncConfigError(AppException):
    """Error de configuracion del pipeline (credenciales, recurso desconocido)."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="SYNC_CONFIG_ERROR",
        )
