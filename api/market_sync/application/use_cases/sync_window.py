"""
Calculo de la ventana temporal de una corrida de sync.

- Incremental: desde el mayor `created_at` local menos N dias de solapamiento
  (granularidad de dia) hasta hoy. Tabla vacia: ultimos SYNC_FULL_WINDOW_DAYS.
- Full: fechas del caller o la ventana amplia por defecto. Algunos recursos
  (clientes) admiten corrida sin filtro de fecha (catalogo completo).
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from market_sync.shared.exceptions.domain import ValidationException
from market_sync.shared.utils.datetime_utils import DateTimeUtils


@dataclass(frozen=True)
class SyncWindow:
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None


def incremental_window(
    last_created_at: Optional[datetime],
    now: datetime,
    *,
    overlap_days: int = 1,
    fallback_days: int = 30,
) -> SyncWindow:
    """
    Ventana incremental.

    Args:
        last_created_at: Mayor `created_at` de la tabla del recurso (None si vacia)
        now: Instante de referencia
        overlap_days: Dias de solapamiento hacia atras
        fallback_days: Dias hacia atras cuando no hay datos locales

    Returns:
        SyncWindow con fechas inclusivas
    """
    today = DateTimeUtils.ensure_utc(now).date()
    if last_created_at is None:
        start = today - timedelta(days=fallback_days)
    else:
        start = DateTimeUtils.ensure_utc(last_created_at).date() - timedelta(days=overlap_days)
    return SyncWindow(start=min(start, today), end=today)


def full_window(
    start_date: Optional[date],
    end_date: Optional[date],
    now: datetime,
    *,
    default_days: int = 30,
    allow_unbounded: bool = False,
) -> SyncWindow:
    """Ventana de una corrida full; sin fechas usa la ventana amplia por defecto."""
    today = DateTimeUtils.ensure_utc(now).date()

    if start_date is None and end_date is None:
        if allow_unbounded:
            return SyncWindow()
        return SyncWindow(start=today - timedelta(days=default_days), end=today)

    start = start_date or (end_date or today) - timedelta(days=default_days)
    end = end_date or today
    if start > end:
        raise ValidationException(
            f"La fecha de inicio {start} es posterior a la fecha de fin {end}",
            field="startDate",
        )
    return SyncWindow(start=start, end=end)
