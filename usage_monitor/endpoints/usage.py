"""Endpoints de velocidad actual, series de uso y reportes."""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from usage_monitor.core.domain import Granularity, HourlySummary, UsageTotals
from usage_monitor.core.errors import PersistenceFailure
from usage_monitor.core.formatting import format_bytes, format_speed
from usage_monitor.core.timebuckets import previous_hour_start
from usage_monitor.schemas import (
    AggregateResult,
    CounterStatsOut,
    DataPointOut,
    DataPointsOut,
    HourlySummaryOut,
    PeaksOut,
    SpeedOut,
    UsageReportOut,
    UsageTotalsOut,
)
from usage_monitor.service import UsageService

from .deps import get_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["usage"])

DEFAULT_WINDOW_SECONDS = 24 * 3600


def _resolve_range(start: Optional[int], end: Optional[int]) -> tuple[int, int]:
    end = int(time.time()) if end is None else end
    start = end - DEFAULT_WINDOW_SECONDS if start is None else start
    if start >= end:
        raise HTTPException(status_code=422, detail="'from' must be before 'to'")
    return start, end


def _store_error(e: PersistenceFailure) -> HTTPException:
    logger.error("[API] Store error op=%s err=%s", e.operation, type(e.cause).__name__)
    return HTTPException(status_code=503, detail=f"Store error: {type(e.cause).__name__}")


def _summary_out(summary: HourlySummary) -> HourlySummaryOut:
    return HourlySummaryOut(
        period_start=summary.period_start,
        period_end=summary.period_end,
        total_download=summary.total_download,
        total_upload=summary.total_upload,
        peak_download_speed=summary.peak_download_speed,
        peak_upload_speed=summary.peak_upload_speed,
        sample_count=summary.sample_count,
    )


def _totals_out(totals: UsageTotals) -> UsageTotalsOut:
    return UsageTotalsOut(
        period_start=totals.period_start,
        period_end=totals.period_end,
        total_download=totals.total_download,
        total_upload=totals.total_upload,
        peak_download_speed=totals.peak_download_speed,
        peak_upload_speed=totals.peak_upload_speed,
        sample_count=totals.sample_count,
        total_download_display=format_bytes(totals.total_download),
        total_upload_display=format_bytes(totals.total_upload),
    )


@router.get("/speed", response_model=SpeedOut)
def current_speed(service: UsageService = Depends(get_service)):
    reading = service.loop.current_speed()
    return SpeedOut(
        download_bytes_per_second=reading.download_bytes_per_second,
        upload_bytes_per_second=reading.upload_bytes_per_second,
        timestamp=reading.timestamp,
        download_display=format_speed(reading.download_bytes_per_second),
        upload_display=format_speed(reading.upload_bytes_per_second),
    )


@router.get("/stats", response_model=CounterStatsOut)
def current_stats(service: UsageService = Depends(get_service)):
    sample = service.loop.current_stats()
    if sample is None:
        raise HTTPException(status_code=404, detail="no sample taken yet")
    return CounterStatsOut(**sample.to_dict())


@router.get("/usage", response_model=DataPointsOut)
def usage_points(
    start: Optional[int] = Query(default=None, alias="from"),
    end: Optional[int] = Query(default=None, alias="to"),
    granularity: Granularity = Query(default=Granularity.HOUR),
    service: UsageService = Depends(get_service),
):
    start, end = _resolve_range(start, end)
    try:
        points = service.queries.data_points(start, end, granularity)
    except PersistenceFailure as e:
        raise _store_error(e)
    return DataPointsOut(
        granularity=granularity,
        start=start,
        end=end,
        points=[DataPointOut(timestamp=p.timestamp, download_bytes=p.download_bytes, upload_bytes=p.upload_bytes) for p in points],
    )


@router.get("/usage/peaks", response_model=PeaksOut)
def usage_peaks(
    start: Optional[int] = Query(default=None, alias="from"),
    end: Optional[int] = Query(default=None, alias="to"),
    service: UsageService = Depends(get_service),
):
    start, end = _resolve_range(start, end)
    try:
        peaks = service.queries.filtered_peaks(start, end)
    except PersistenceFailure as e:
        raise _store_error(e)
    return PeaksOut(start=start, end=end, peak_download=peaks.peak_download, peak_upload=peaks.peak_upload)


@router.get("/usage/report", response_model=UsageReportOut)
def usage_report(
    start: Optional[int] = Query(default=None, alias="from"),
    end: Optional[int] = Query(default=None, alias="to"),
    service: UsageService = Depends(get_service),
):
    start, end = _resolve_range(start, end)
    try:
        report = service.queries.usage_report(start, end)
    except PersistenceFailure as e:
        raise _store_error(e)
    return UsageReportOut(
        start=report.period_start,
        end=report.period_end,
        source=report.source,
        totals=_totals_out(report.totals) if report.totals is not None else None,
        daily=[DataPointOut(timestamp=p.timestamp, download_bytes=p.download_bytes, upload_bytes=p.upload_bytes) for p in report.daily],
    )


@router.post("/aggregate", response_model=AggregateResult)
def aggregate_hour(
    hour_start: Optional[int] = Query(default=None),
    service: UsageService = Depends(get_service),
):
    """Re-run the hourly rollup (defaults to the previous complete hour)."""
    if hour_start is None:
        hour_start = previous_hour_start(int(time.time()))
    summary = service.aggregator.aggregate_hour(hour_start)
    return AggregateResult(
        hour_start=hour_start,
        summary=_summary_out(summary) if summary is not None else None,
    )
