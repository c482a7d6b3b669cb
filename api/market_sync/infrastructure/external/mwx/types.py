"""
Tipos del cliente de la fuente externa.

Se mantienen libres de I/O para poder testearlos fácilmente.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple


class AuthMode(str, Enum):
    """Como se autentica cada endpoint."""

    API_KEY = "api_key"  # header x-api-key fijo
    TOKEN = "token"  # token de sesion back-office (header + cookie), renovable en 401
    STATIC_TOKEN = "static_token"  # Authorization + X-API-KEY fijos (credit manager)


@dataclass(frozen=True)
class SourceQuery:
    """
    Filtro de una corrida, independiente del formato de cada endpoint.

    - start_date/end_date: ventana (granularidad de dia)
    - extra: overrides crudos del filtro enviados por el caller
    """

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    customer_guid: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    order: str = "created_at"
    sort: str = "DESC"

    @property
    def has_window(self) -> bool:
        return self.start_date is not None and self.end_date is not None


@dataclass(frozen=True)
class PageEnvelope:
    """Contenido extraido del envelope de respuesta de un endpoint."""

    records: List[Dict[str, Any]]
    total_count: Optional[int] = None
    total_pages: Optional[int] = None
    current_page: Optional[int] = None


@dataclass(frozen=True)
class SourcePage:
    """Una pagina de registros crudos junto con los metadatos de paginacion."""

    records: Tuple[Dict[str, Any], ...]
    page: int
    page_size: int
    total_count: Optional[int] = None
    total_pages: Optional[int] = None
    current_page: Optional[int] = None

    def __len__(self) -> int:
        return len(self.records)


RequestBuilder = Callable[[int, int, SourceQuery], Dict[str, Any]]
EnvelopeExtractor = Callable[[Any], PageEnvelope]


@dataclass(frozen=True)
class SourceEndpoint:
    """
    Descriptor de un endpoint paginado de la fuente.

    - method: "POST" (body JSON) o "GET" (query string)
    - build_request: arma el body/query a partir de (page, limit, query)
    - extract: valida el envelope y extrae registros y totales; levanta
      ValueError si la forma no es la esperada
    """

    name: str
    method: str
    url: str
    auth_mode: AuthMode
    build_request: RequestBuilder
    extract: EnvelopeExtractor
    default_page_size: int = 100
    extra_headers: Mapping[str, str] = field(default_factory=dict)
