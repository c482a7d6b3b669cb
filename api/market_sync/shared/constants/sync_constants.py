"""
Constantes del pipeline de sincronizacion.
Define estados de corrida, estados de respuesta y etiquetas de actividad.
"""
from enum import Enum


class RunState(str, Enum):
    """Estados de una corrida de sync (maquina de estados del coordinador)."""
    IDLE = "idle"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    UPSERTING = "upserting"
    DECIDING = "deciding_continuation"
    DONE = "done"
    FAILED = "failed"


class SyncStatus(str, Enum):
    """Estado reportado al caller que dispara el sync."""
    SUCCESS = "success"
    # La fuente no devolvio registros para la ventana
    SYNC_COMPLETED = "sync_completed"
    PARTIAL_ERROR = "partial_error"
    ERROR = "error"


class SyncMode(str, Enum):
    """Modo de ventana temporal de una corrida."""
    FULL = "full"
    INCREMENTAL = "incremental"


class ActivityStatus(str, Enum):
    """
    Clasificacion de actividad (churn) segun el ultimo debito.

    - active: ultimo debito hace 7 dias o menos
    - idle: mas de 7 y hasta 30 dias
    - passive: mas de 30 dias o sin debitos
    """
    ACTIVE = "active"
    IDLE = "idle"
    PASSIVE = "passive"


# Tipo de movimiento de uso que cuenta como actividad (se compara en minusculas)
DEBIT_TYPE = "debit"
CREDIT_TYPE = "credit"

# Estado de transaccion considerado exitoso (se compara en minusculas)
FINISHED_STATUS = "finished"
