"""
Middleware para manejo centralizado de errores.

Las AppException que escapan del routing (por ejemplo al construir
dependencias) responden con su propio status; cualquier otra excepcion se
registra con traceback y responde 500.
"""
import time

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger

from market_sync.shared.exceptions.base import AppException, error_body


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware para capturar errores no manejados."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            return await call_next(request)
        except AppException as exc:
            logger.warning(
                f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}: {exc.message}"
            )
            return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.opt(exception=exc).error(
                f"Error no manejado en {request.method} {request.url.path} "
                f"tras {elapsed_ms:.0f} ms: {exc}"
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_body(
                    "INTERNAL_SERVER_ERROR",
                    "Ha ocurrido un error interno del servidor",
                ),
            )
