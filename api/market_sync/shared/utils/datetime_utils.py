"""
Utilidades para manejo de fechas y horas.

Todas las fechas que cruzan la frontera de normalizacion se expresan como
datetime con zona horaria UTC. SQLite devuelve datetimes naive; se asumen UTC.
"""
from datetime import date, datetime, time, timezone
from typing import Any, Optional


class DateTimeUtils:
    """Clase de utilidades para operaciones con fechas y horas."""

    @staticmethod
    def now_utc() -> datetime:
        """
        Obtiene la fecha y hora actual en UTC.

        Returns:
            datetime: Fecha y hora actual en UTC
        """
        return datetime.now(timezone.utc)

    @staticmethod
    def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
        """Convierte a UTC; los datetimes naive se interpretan como UTC."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def parse_datetime(value: Any) -> Optional[datetime]:
        """
        Parsea un timestamp de la fuente externa.

        Acepta strings ISO 8601 (con o sin 'Z'), "YYYY-MM-DD HH:MM:SS",
        fechas, datetimes y epoch en segundos o milisegundos.

        Args:
            value: Valor crudo de la fuente

        Returns:
            Optional[datetime]: datetime UTC o None si no es parseable
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, datetime):
            return DateTimeUtils.ensure_utc(value)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        if isinstance(value, (int, float)):
            seconds = value / 1000 if value > 1e11 else value
            try:
                return datetime.fromtimestamp(seconds, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return None
        if not isinstance(value, str):
            return None

        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            return DateTimeUtils.ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            pass
        for fmt in ("%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S", "%d/%m/%Y"):
            try:
                return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
            except ValueError:
                continue
        return None

    @staticmethod
    def parse_date(value: Any) -> Optional[date]:
        """Parsea una fecha YYYY-MM-DD (o un timestamp completo) a date."""
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        parsed = DateTimeUtils.parse_datetime(value)
        return parsed.date() if parsed else None

    @staticmethod
    def format_ymd(value: date) -> str:
        """Formatea una fecha como YYYY-MM-DD (formato esperado por la fuente)."""
        return value.strftime("%Y-%m-%d")

    @staticmethod
    def start_of_day(value: date) -> datetime:
        """Inicio del dia (00:00:00 UTC)."""
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    @staticmethod
    def end_of_day(value: date) -> datetime:
        """Fin del dia (23:59:59 UTC)."""
        return datetime.combine(value, time(23, 59, 59), tzinfo=timezone.utc)

    @staticmethod
    def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
        """
        Convierte un datetime a string ISO 8601.

        Args:
            dt: Objeto datetime

        Returns:
            str: Fecha en formato ISO 8601
        """
        if dt is None:
            return None
        return dt.isoformat()
