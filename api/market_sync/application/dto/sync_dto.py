"""
DTOs para los endpoints de sincronizacion.

El body de entrada acepta los nombres camelCase que usa el dashboard
(`startDate`, `endDate`, `customerGuid`) ademas de snake_case.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from market_sync.application.use_cases.sync_use_cases import (
    SyncAllResult,
    SyncRequest,
    SyncRunSummary,
)
from market_sync.shared.constants.sync_constants import SyncMode


class SyncRequestDTO(BaseModel):
    """
    Parametros de una corrida de sync.

    - `incremental=true` o `mode="incremental"`: ventana desde el ultimo
      registro local menos un dia de solapamiento.
    - `limit` se acota al maximo permitido por la fuente.
    """

    model_config = ConfigDict(populate_by_name=True)

    incremental: Optional[bool] = None
    mode: Optional[Literal["full", "incremental"]] = None
    limit: Optional[int] = Field(None, description="Tamaño de pagina (se acota a [1, 3000])")
    page: int = Field(1, description="Pagina inicial (1-based)")
    filter: Dict[str, Any] = Field(default_factory=dict, description="Overrides crudos del filtro de la fuente")
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")
    status: Optional[str] = None
    customer_guid: Optional[str] = Field(None, alias="customerGuid")

    @model_validator(mode="after")
    def check_dates(self) -> "SyncRequestDTO":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate no puede ser posterior a endDate")
        return self

    @property
    def is_incremental(self) -> bool:
        return self.incremental is True or self.mode == "incremental"

    def to_request(self) -> SyncRequest:
        return SyncRequest(
            mode=SyncMode.INCREMENTAL if self.is_incremental else SyncMode.FULL,
            limit=self.limit,
            page=self.page,
            start_date=self.start_date,
            end_date=self.end_date,
            status=self.status,
            customer_guid=self.customer_guid,
            filter=dict(self.filter),
        )


class SyncErrorSampleDTO(BaseModel):
    guid: Optional[str] = None
    error: str


class SyncResponseDTO(BaseModel):
    """Resumen de una corrida."""

    resource: str
    mode: str
    status: str
    state: str
    total_processed: int
    success_count: int
    error_count: int
    duplicate_count: int
    detail_error_count: int
    pages_fetched: int
    total_pages: Optional[int] = None
    window_start: Optional[date] = None
    window_end: Optional[date] = None
    sample_errors: List[SyncErrorSampleDTO] = Field(default_factory=list)
    message: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_summary(cls, summary: SyncRunSummary) -> "SyncResponseDTO":
        return cls(**summary.to_dict())


class SyncAllResponseDTO(BaseModel):
    """Resultado de la sincronizacion completa."""

    status: str
    results: List[SyncResponseDTO]
    triggered_at: datetime

    @classmethod
    def from_result(cls, result: SyncAllResult) -> "SyncAllResponseDTO":
        return cls(
            status=result.status.value,
            results=[SyncResponseDTO.from_summary(s) for s in result.results],
            triggered_at=result.triggered_at,
        )
