import io
import math
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

import os

import pandas as pd

# Debug toggler: set SP_DEBUG=1 to enable verbose parse logs
DEBUG = os.getenv("SP_DEBUG", "0") == "1"

DEFAULT_DATA_PATH = os.getenv("SP_DATA_PATH", "data/Sensordaten.txt")

DELIMITER = "|"
METRIC_COLUMNS = ["Temperature", "Humidity", "Pressure"]
COLUMNS = ["DateTime"] + METRIC_COLUMNS

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_ZERO_WIDTH_CHARS = ("\ufeff", "\u200b", "\u200c", "\u200d")
_RADIX_RE = re.compile(r"0[xXoObB][0-9a-fA-F]+")


def dprint(*args, **kwargs):
    if DEBUG:
        print(*args, **kwargs)


def empty_readings() -> pd.DataFrame:
    """Return an empty frame with the canonical reading schema."""

    data: Dict[str, pd.Series] = {"DateTime": pd.Series(dtype="datetime64[ns]")}
    for col in METRIC_COLUMNS:
        data[col] = pd.Series(dtype="float64")
    return pd.DataFrame(data, columns=COLUMNS)


def _strip_bom_and_zero_width(text: str) -> str:
    for ch in _ZERO_WIDTH_CHARS:
        text = text.replace(ch, "")
    return text


def _parse_ts(value: object) -> Optional[pd.Timestamp]:
    """Return a naive local timestamp for ISO-8601 text, or None.

    The text must be a bare ISO-8601 stamp: surrounding whitespace or a
    space between date and time makes the line invalid.
    """

    if value is None:
        return None
    text = str(value)
    if not text or any(ch.isspace() for ch in text):
        return None

    ts = pd.to_datetime(text, format="ISO8601", errors="coerce")
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        # Offsets are honoured, then expressed in the machine's local time.
        ts = pd.Timestamp(ts.to_pydatetime().astimezone().replace(tzinfo=None))
    return ts


def _parse_numeric_value(text: object) -> Optional[float]:
    """Return a finite float parsed from ``text`` or None.

    A blank field reads as ``0.0``. Unsigned ``0x``/``0o``/``0b`` integers
    are accepted; digit separators (``1_000``) are not.
    """

    if text is None:
        return None
    cleaned = str(text).strip()
    if not cleaned:
        return 0.0
    if "_" in cleaned:
        return None
    if _RADIX_RE.fullmatch(cleaned):
        try:
            return float(int(cleaned, 0))
        except ValueError:
            return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _parse_line(line: str) -> Optional[Dict[str, object]]:
    """Turn one data line into a reading record, or None when malformed."""

    fields = line.split(DELIMITER)
    if len(fields) < len(COLUMNS):
        return None

    ts = _parse_ts(fields[0])
    if ts is None:
        return None

    record: Dict[str, object] = {"DateTime": ts}
    for col, raw in zip(METRIC_COLUMNS, fields[1:]):
        value = _parse_numeric_value(raw)
        if value is None:
            return None
        record[col] = value
    return record


def parse_sensor_text(text: str) -> pd.DataFrame:
    """Parse a pipe-delimited sensor log into readings sorted by time.

    The first non-empty line is a header and is ignored. Lines with an
    unparsable timestamp or a non-numeric value are dropped without raising;
    blank values read as zero.
    An input with no usable data lines gives an empty frame.
    """

    lines = [line for line in _LINE_SPLIT_RE.split(text or "") if line]
    if len(lines) < 2:
        return empty_readings()

    records: List[Dict[str, object]] = []
    dropped = 0
    for line in lines[1:]:
        record = _parse_line(line)
        if record is None:
            dropped += 1
            continue
        records.append(record)

    if dropped:
        dprint(f"[parse] dropped {dropped} malformed line(s) of {len(lines) - 1}")
    if not records:
        return empty_readings()

    df = pd.DataFrame.from_records(records, columns=COLUMNS)
    df["DateTime"] = pd.to_datetime(df["DateTime"])
    for col in METRIC_COLUMNS:
        df[col] = df[col].astype("float64")
    df = df.sort_values("DateTime", kind="stable").reset_index(drop=True)
    dprint(f"[parse] {len(df)} readings from {df['DateTime'].iloc[0]} to {df['DateTime'].iloc[-1]}")
    return df


def read_sensor_text(source: Union[str, Path, io.IOBase, object]) -> str:
    """Return the raw text of a sensor log from a path or an uploaded file.

    Raises ``ValueError`` when the text cannot be obtained.
    """

    try:
        if isinstance(source, (str, Path)):
            with open(source, "rb") as file:
                raw = file.read()
        else:
            raw = source.read()
    except (OSError, AttributeError) as exc:
        raise ValueError(f"Failed to read sensor data from {source!r}") from exc

    if isinstance(raw, bytes):
        text = raw.decode("utf-8-sig", errors="replace")
    else:
        text = str(raw)
    return _strip_bom_and_zero_width(text)


__all__ = [
    "COLUMNS",
    "DEFAULT_DATA_PATH",
    "METRIC_COLUMNS",
    "dprint",
    "empty_readings",
    "parse_sensor_text",
    "read_sensor_text",
]
