from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from usage_monitor.core.domain import Granularity


class SpeedOut(BaseModel):
    download_bytes_per_second: int = Field(..., ge=0)
    upload_bytes_per_second: int = Field(..., ge=0)
    timestamp: int
    download_display: str
    upload_display: str


class CounterStatsOut(BaseModel):
    timestamp: int
    bytes_received: int
    bytes_sent: int


class DataPointOut(BaseModel):
    timestamp: int
    download_bytes: int = Field(..., ge=0)
    upload_bytes: int = Field(..., ge=0)


class DataPointsOut(BaseModel):
    granularity: Granularity
    start: int
    end: int
    points: List[DataPointOut] = Field(default_factory=list)


class PeaksOut(BaseModel):
    start: int
    end: int
    peak_download: int = Field(..., ge=0)
    peak_upload: int = Field(..., ge=0)


class HourlySummaryOut(BaseModel):
    period_start: int
    period_end: int
    total_download: int
    total_upload: int
    peak_download_speed: int
    peak_upload_speed: int
    sample_count: int


class AggregateResult(BaseModel):
    hour_start: int
    summary: Optional[HourlySummaryOut] = None


class UsageTotalsOut(BaseModel):
    period_start: int
    period_end: int
    total_download: int
    total_upload: int
    peak_download_speed: int
    peak_upload_speed: int
    sample_count: int
    total_download_display: str
    total_upload_display: str


class UsageReportOut(BaseModel):
    start: int
    end: int
    source: str
    totals: Optional[UsageTotalsOut] = None
    daily: List[DataPointOut] = Field(default_factory=list)


class LoopStatusOut(BaseModel):
    state: str
    next_rollup_at: Optional[int] = None
    stats: dict
