"""
Cliente de la API externa del marketplace (MWX).

Expone una unica operacion de lectura paginada (`fetch_page`) sobre un conjunto
de endpoints descriptos declarativamente. No tiene efectos sobre el storage.
"""
from .auth import MwxAuthenticator
from .client import MwxSourceClient
from .endpoints import build_endpoints
from .types import AuthMode, PageEnvelope, SourceEndpoint, SourcePage, SourceQuery

__all__ = [
    "AuthMode",
    "MwxAuthenticator",
    "MwxSourceClient",
    "PageEnvelope",
    "SourceEndpoint",
    "SourcePage",
    "SourceQuery",
    "build_endpoints",
]
