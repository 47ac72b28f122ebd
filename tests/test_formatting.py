import pytest

from usage_monitor.core.formatting import format_bytes, format_speed


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0 B"),
        (512, "512 B"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (10 * 1024, "10 KB"),
        (5 * 1024 ** 3, "5 GB"),
        (3 * 1024 ** 4, "3 TB"),
        (2048 * 1024 ** 4, "2048 TB"),
    ],
)
def test_format_bytes(value, expected):
    assert format_bytes(value) == expected


@pytest.mark.parametrize(
    "bytes_per_second, expected",
    [
        (0, "0 bps"),
        (1, "8 bps"),
        (128, "1 Kbps"),
        (192, "1.5 Kbps"),
        (1_250_000, "9.5 Mbps"),
        (125_000_000, "954 Mbps"),
    ],
)
def test_format_speed_uses_bits(bytes_per_second, expected):
    assert format_speed(bytes_per_second) == expected
