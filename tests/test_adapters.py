"""Tests del colaborador de contadores de adaptadores."""

from types import SimpleNamespace

import pytest

from conftest import StaticCounterSource
from usage_monitor import adapters
from usage_monitor.adapters import (
    PsutilCounterSource,
    is_physical_adapter,
    read_sample,
)
from usage_monitor.adapters import network_counters
from usage_monitor.core.domain import RawSample
from usage_monitor.core.errors import AdapterReadFailure


def _counters(recv, sent):
    return SimpleNamespace(bytes_recv=recv, bytes_sent=sent)


UP = SimpleNamespace(isup=True)
DOWN = SimpleNamespace(isup=False)


class TestAdapterFilter:
    @pytest.mark.parametrize("name", ["eth0", "enp3s0", "wlan0", "en0", "Wi-Fi", "Ethernet 2"])
    def test_physical_adapters_are_counted(self, name):
        assert is_physical_adapter(name, UP, _counters(10, 10))

    @pytest.mark.parametrize(
        "name",
        ["lo", "lo0", "docker0", "veth12ab", "tun0", "utun3", "wg0", "tailscale0",
         "Loopback Pseudo-Interface 1", "Ethernet-WFP Native MAC Layer LightWeight Filter-0000"],
    )
    def test_virtual_adapters_are_excluded(self, name):
        assert not is_physical_adapter(name, UP, _counters(10, 10))

    def test_down_or_unknown_adapters_are_excluded(self):
        assert not is_physical_adapter("eth0", DOWN, _counters(10, 10))
        assert not is_physical_adapter("eth0", None, _counters(10, 10))

    def test_adapters_without_traffic_are_excluded(self):
        assert not is_physical_adapter("eth1", UP, _counters(0, 0))


class TestPsutilCounterSource:
    def test_sums_physical_adapters(self, monkeypatch):
        monkeypatch.setattr(network_counters.psutil, "net_io_counters", lambda pernic: {
            "eth0": _counters(1_000, 100),
            "wlan0": _counters(2_000, 200),
            "lo": _counters(9_999_999, 9_999_999),
            "eth1": _counters(5_000, 500),
        })
        monkeypatch.setattr(network_counters.psutil, "net_if_stats", lambda: {
            "eth0": UP, "wlan0": UP, "lo": UP, "eth1": DOWN,
        })

        assert PsutilCounterSource().current_cumulative_counters() == (3_000, 300)

    def test_os_errors_become_adapter_read_failure(self, monkeypatch):
        def broken(pernic):
            raise OSError("no /proc/net/dev")

        monkeypatch.setattr(network_counters.psutil, "net_io_counters", broken)

        with pytest.raises(AdapterReadFailure):
            PsutilCounterSource().current_cumulative_counters()

    def test_custom_filter(self, monkeypatch):
        monkeypatch.setattr(network_counters.psutil, "net_io_counters", lambda pernic: {
            "lo": _counters(7, 3),
        })
        monkeypatch.setattr(network_counters.psutil, "net_if_stats", lambda: {"lo": UP})

        source = PsutilCounterSource(adapter_filter=lambda name, stats, counters: True)

        assert source.current_cumulative_counters() == (7, 3)


class TestReadSample:
    def test_sample_is_stamped_with_clock(self):
        source = StaticCounterSource(bytes_received=10, bytes_sent=20)

        assert read_sample(source, clock=lambda: 1234.9) == RawSample(1234, 10, 20)

    def test_read_failure_propagates(self):
        source = StaticCounterSource()
        source.fail_next = True

        with pytest.raises(AdapterReadFailure):
            read_sample(source, clock=lambda: 1234.0)
        assert read_sample(source, clock=lambda: 1235.0) == RawSample(1235, 0, 0)


class TestPublicApi:
    def test_only_real_counter_sources_are_exported(self):
        assert set(adapters.__all__) == {
            "CounterSource",
            "PsutilCounterSource",
            "describe_adapters",
            "is_physical_adapter",
            "read_sample",
        }
        assert not hasattr(adapters, "StaticCounterSource")
