"""
CLI: sincronizacion MWX -> base local, fuera del ciclo request/response.

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) en modo incremental.

Variables de entorno (ver market_sync/core/config.py):
  - DATABASE_URL (o DATABASE_HOST/PORT/USER/PASSWORD/NAME)
  - MWX_API_KEY, CREDIT_MANAGER_TOKEN
  - MWX_APP_KEY, MWX_IDENTIFIER, MWX_PASSWORD (solo back-office)

Ejecución:
  python scripts/run_sync.py all
  python scripts/run_sync.py customers --incremental
  python scripts/run_sync.py transactions --start-date 2025-01-01 --end-date 2025-01-31
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `market_sync/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

# Cargar variables desde .env si existe (api/.env o raiz del repo).
_REPO_ROOT = _API_ROOT.parent
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_REPO_ROOT / ".env", override=False)

from market_sync.application.use_cases.sync_resources import SYNC_RESOURCES
from market_sync.application.use_cases.sync_use_cases import (
    OK_STATUSES,
    SyncAllUseCase,
    SyncRequest,
    SyncRunCoordinator,
)
from market_sync.core.config import settings
from market_sync.infrastructure.database.session import Database
from market_sync.infrastructure.external.mwx import MwxSourceClient
from market_sync.shared.constants.sync_constants import SyncMode, SyncStatus
from market_sync.shared.utils.datetime_utils import DateTimeUtils


def _parse_date(value: str):
    parsed = DateTimeUtils.parse_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"Fecha invalida (YYYY-MM-DD): {value}")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sincroniza datos del marketplace MWX")
    parser.add_argument(
        "resource",
        choices=["all", *SYNC_RESOURCES.keys()],
        help="Recurso a sincronizar ('all' = clientes, transacciones y uso).",
    )
    parser.add_argument("--incremental", action="store_true", help="Ventana desde el ultimo registro local.")
    parser.add_argument("--start-date", type=_parse_date, default=None)
    parser.add_argument("--end-date", type=_parse_date, default=None)
    parser.add_argument("--limit", type=int, default=None, help="Tamaño de pagina.")
    parser.add_argument("--status", default=None, help="Estado de transaccion a filtrar.")
    parser.add_argument("--customer-guid", default=None)
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Crea las tablas si no existen (en produccion usar alembic).",
    )
    return parser


async def _run(args: argparse.Namespace) -> int:
    database = Database.from_settings(settings)
    source = MwxSourceClient.from_settings(settings)
    try:
        if args.create_tables:
            await database.create_all()

        coordinator = SyncRunCoordinator(source, database.session_factory, settings)

        if args.resource == "all":
            result = await SyncAllUseCase(coordinator).execute()
            for summary in result.results:
                logger.info(json.dumps(summary.to_dict(), ensure_ascii=False))
            return 0 if result.status is SyncStatus.SUCCESS else 1

        request = SyncRequest(
            mode=SyncMode.INCREMENTAL if args.incremental else SyncMode.FULL,
            limit=args.limit,
            start_date=args.start_date,
            end_date=args.end_date,
            status=args.status,
            customer_guid=args.customer_guid,
        )
        summary = await coordinator.run(args.resource, request)
        logger.info(json.dumps(summary.to_dict(), ensure_ascii=False))
        if summary.status is SyncStatus.ERROR:
            return 2
        return 0 if summary.status in OK_STATUSES else 1
    finally:
        await source.aclose()
        await database.dispose()


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
