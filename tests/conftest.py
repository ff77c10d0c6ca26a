"""Shared test fixtures."""
import struct
from datetime import datetime
from typing import Callable, List, Optional, Sequence

import pytest

from ftplab import config

SETTINGS_ENV_VARS = (
    "FTPLAB_TARGET_MINUTES",
    "FTPLAB_LONG_WORKOUT_MINUTES",
    "FTPLAB_EXTRACT_LONG_WORKOUTS",
    "FTPLAB_RIDER_WEIGHT_KG",
    "FTPLAB_LOG_LEVEL",
)

# ─── FIT binary builder ───────────────────────────────────────────────────────

FIT_EPOCH = datetime(1989, 12, 31)

_FIT_CRC_TABLE = (
    0x0000, 0xCC01, 0xD801, 0x1400, 0xF001, 0x3C00, 0x2800, 0xE401,
    0xA001, 0x6C00, 0x7800, 0xB401, 0x5000, 0x9C01, 0x8801, 0x4400,
)

# FIT base types
_ENUM, _UINT8, _UINT16, _UINT32 = 0x00, 0x02, 0x84, 0x86
_INVALID_UINT8, _INVALID_UINT16 = 0xFF, 0xFFFF

# Global message numbers
_FILE_ID, _SPORT, _RECORD = 0, 12, 20


def _fit_crc(data: bytes) -> int:
    crc = 0
    for byte in data:
        tmp = _FIT_CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ _FIT_CRC_TABLE[byte & 0xF]
        tmp = _FIT_CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ _FIT_CRC_TABLE[(byte >> 4) & 0xF]
    return crc


def _definition(local: int, global_num: int, fields: Sequence[tuple]) -> bytes:
    """Definition message: little-endian, fields as (number, size, base type)."""
    out = struct.pack("<BBBHB", 0x40 | local, 0, 0, global_num, len(fields))
    for field_def in fields:
        out += struct.pack("<BBB", *field_def)
    return out


def build_fit_file(
    power: Sequence[Optional[int]],
    heart_rate: Optional[Sequence[Optional[int]]] = None,
    start: datetime = datetime(2024, 5, 1, 10, 0, 0),
    speed_ms: float = 10.0,
    sport: int = 2,
) -> bytes:
    """
    Minimal valid FIT activity: file_id, sport, then one record per second
    with power, heart rate, speed and cumulative distance. None encodes the
    FIT "invalid" value for that field.
    """
    messages: List[bytes] = [
        _definition(0, _FILE_ID, [(0, 1, _ENUM), (1, 2, _UINT16)]),
        struct.pack("<BBH", 0, 4, 1),  # type=activity, manufacturer=garmin
        _definition(1, _SPORT, [(0, 1, _ENUM)]),
        struct.pack("<BB", 1, sport),
        _definition(2, _RECORD, [
            (253, 4, _UINT32),  # timestamp
            (7, 2, _UINT16),    # power
            (3, 1, _UINT8),     # heart_rate
            (6, 2, _UINT16),    # speed, mm/s
            (5, 4, _UINT32),    # distance, cm
        ]),
    ]
    base = int((start - FIT_EPOCH).total_seconds())
    for i, watts in enumerate(power):
        hr = heart_rate[i] if heart_rate is not None else None
        messages.append(struct.pack(
            "<BIHBHI",
            2,
            base + i,
            _INVALID_UINT16 if watts is None else watts,
            _INVALID_UINT8 if hr is None else hr,
            int(round(speed_ms * 1000)),
            int(round(speed_ms * 100 * (i + 1))),
        ))

    data = b"".join(messages)
    header = struct.pack("<BBHI4s", 14, 0x10, 2093, len(data), b".FIT")
    header += struct.pack("<H", _fit_crc(header))
    body = header + data
    return body + struct.pack("<H", _fit_crc(body))


# ─── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test starts from default settings, unaffected by the shell environment."""
    for var in SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config, "_settings", None)


@pytest.fixture(name="fit_file")
def fit_file_fixture() -> Callable[..., bytes]:
    """Factory building FIT binaries in memory."""
    return build_fit_file


@pytest.fixture(name="start_time")
def start_time_fixture() -> datetime:
    return datetime(2024, 5, 1, 10, 0, 0)


@pytest.fixture(name="steady_power")
def steady_power_fixture() -> List[int]:
    """A perfectly paced 20-minute test at 250 W."""
    return [250] * 1200
