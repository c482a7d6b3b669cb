"""
Clasificador de actividad (churn) de clientes.

La actividad se deriva del ultimo movimiento de tipo debito (consumo de
creditos) del cliente:
- active: hace 7 dias o menos (incluye exactamente 7 dias)
- idle: mas de 7 y hasta 30 dias
- passive: mas de 30 dias, o sin debitos

`activity_bounds` expone los mismos cortes para que los filtros SQL
coincidan con la clasificacion en Python.
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple

from market_sync.shared.constants.sync_constants import ActivityStatus
from market_sync.shared.utils.datetime_utils import DateTimeUtils


ACTIVE_WINDOW = timedelta(days=7)
IDLE_WINDOW = timedelta(days=30)


def classify_activity(
    last_debit_at: Optional[datetime], now: Optional[datetime] = None
) -> ActivityStatus:
    """
    Clasifica la actividad de un cliente.

    Args:
        last_debit_at: Timestamp del ultimo debito (None si nunca consumio)
        now: Instante de referencia (UTC); por defecto ahora

    Returns:
        ActivityStatus
    """
    if last_debit_at is None:
        return ActivityStatus.PASSIVE

    reference = DateTimeUtils.ensure_utc(now) or DateTimeUtils.now_utc()
    age = reference - DateTimeUtils.ensure_utc(last_debit_at)

    # Timestamps futuros (desfase de reloj) cuentan como actividad reciente
    if age <= ACTIVE_WINDOW:
        return ActivityStatus.ACTIVE
    if age <= IDLE_WINDOW:
        return ActivityStatus.IDLE
    return ActivityStatus.PASSIVE


def activity_bounds(
    status: ActivityStatus, now: Optional[datetime] = None
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Cortes (lower, upper) sobre el ultimo debito para un estado.

    - active: last_debit_at >= now - 7d (sin cota superior)
    - idle: now - 30d <= last_debit_at < now - 7d
    - passive: last_debit_at < now - 30d o NULL (upper = now - 30d)

    Returns:
        Tupla (lower, upper). lower es inclusivo, upper exclusivo.
    """
    reference = DateTimeUtils.ensure_utc(now) or DateTimeUtils.now_utc()
    active_since = reference - ACTIVE_WINDOW
    idle_since = reference - IDLE_WINDOW

    if status == ActivityStatus.ACTIVE:
        return active_since, None
    if status == ActivityStatus.IDLE:
        return idle_since, active_since
    return None, idle_since
