"""Colaborador de contadores de adaptadores de red (psutil).

Suma los bytes recibidos/enviados de todos los adaptadores físicos que
están operativos. Excluye loopback, túneles, interfaces virtuales y capas
de filtro (que duplican el tráfico de la interfaz física).
"""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import psutil

from usage_monitor.core.domain import RawSample
from usage_monitor.core.errors import AdapterReadFailure

logger = logging.getLogger(__name__)

# Prefijos/fragmentos de nombres de interfaces no físicas (Linux, macOS, Windows).
_VIRTUAL_NAME_PATTERN = re.compile(
    r"^(lo|docker|br-|veth|virbr|vmnet|vboxnet|tun|tap|utun|wg|zt|tailscale|"
    r"gif|stf|awdl|llw|bridge|ppp|ipsec|isatap|teredo)|"
    r"(loopback|pseudo|virtual|hyper-v|vpn|tunnel|-wfp|-qos|filter)",
    re.IGNORECASE,
)


class CounterSource(Protocol):
    """Anything that can produce the cumulative (received, sent) pair."""

    def current_cumulative_counters(self) -> Tuple[int, int]:
        ...


def is_physical_adapter(name: str, stats: Optional[object], counters: object) -> bool:
    if stats is None or not getattr(stats, "isup", False):
        return False
    if _VIRTUAL_NAME_PATTERN.search(name):
        return False
    # Solo adaptadores con tráfico real
    return getattr(counters, "bytes_recv", 0) > 0 or getattr(counters, "bytes_sent", 0) > 0


class PsutilCounterSource:
    """Cumulative counters aggregated across physical, up adapters."""

    def __init__(
        self,
        adapter_filter: Callable[[str, Optional[object], object], bool] = is_physical_adapter,
    ):
        self._adapter_filter = adapter_filter
        self._last_included: Tuple[str, ...] = ()

    def current_cumulative_counters(self) -> Tuple[int, int]:
        try:
            per_nic = psutil.net_io_counters(pernic=True)
            nic_stats = psutil.net_if_stats()
        except (OSError, RuntimeError) as e:
            raise AdapterReadFailure(f"psutil counters unavailable: {e}") from e

        total_received = 0
        total_sent = 0
        included = []
        for name, counters in per_nic.items():
            if not self._adapter_filter(name, nic_stats.get(name), counters):
                continue
            total_received += int(counters.bytes_recv)
            total_sent += int(counters.bytes_sent)
            included.append(name)

        included_key = tuple(sorted(included))
        if included_key != self._last_included:
            logger.info("[ADAPTERS] Adaptadores incluidos: %s", ", ".join(included_key) or "(ninguno)")
            self._last_included = included_key

        return total_received, total_sent


def read_sample(source: CounterSource, clock: Callable[[], float] = time.time) -> RawSample:
    """Read the source and stamp it. Raises AdapterReadFailure."""
    received, sent = source.current_cumulative_counters()
    return RawSample(timestamp=int(clock()), bytes_received=int(received), bytes_sent=int(sent))


def describe_adapters() -> Dict[str, dict]:
    """Snapshot of every adapter and whether it is counted (diagnostics)."""
    try:
        per_nic = psutil.net_io_counters(pernic=True)
        nic_stats = psutil.net_if_stats()
    except (OSError, RuntimeError) as e:
        raise AdapterReadFailure(f"psutil counters unavailable: {e}") from e

    result: Dict[str, dict] = {}
    for name, counters in per_nic.items():
        stats = nic_stats.get(name)
        result[name] = {
            "is_up": bool(getattr(stats, "isup", False)),
            "bytes_recv": int(counters.bytes_recv),
            "bytes_sent": int(counters.bytes_sent),
            "counted": is_physical_adapter(name, stats, counters),
        }
    return result
