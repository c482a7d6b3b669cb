"""
Excepcion base de la aplicacion y formato JSON de los errores.

Toda respuesta de error de la API (handler global y middleware) usa el
mismo cuerpo: `{status: "error", error, message, details}`.
"""
from typing import Any, Dict, Optional


ERROR_STATUS = "error"


def error_body(error_code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Cuerpo JSON estandar de una respuesta de error."""
    return {
        "status": ERROR_STATUS,
        "error": error_code,
        "message": message,
        "details": details or {},
    }


class AppException(Exception):
    """
    Excepcion base de la aplicacion.

    Args:
        message: Mensaje de error descriptivo
        status_code: Codigo de estado HTTP con el que se responde
        error_code: Codigo de error estable para el caller
        details: Contexto adicional (endpoint de la fuente, resumen parcial, ...)
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return error_body(self.error_code, self.message, self.details)
