"""
Record loading for per-line change datasets (loc.csv).

Each row of the dataset describes one line of code at one commit. Rows are
parsed into immutable LineRecord objects; numeric columns become ints and
both timestamp columns become timezone-aware datetimes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
import regex as re

from .errors import DatasetLoadError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "commit",
    "author",
    "date",
    "time",
    "timezone",
    "datetime",
    "file",
    "type",
    "line",
    "depth",
    "length",
)

NUMERIC_COLUMNS = {"line": 1, "depth": 0, "length": 0}  # column -> minimum

_OFFSET_RE = re.compile(r"^(?P<sign>[+-])(?P<hours>\d{2}):?(?P<minutes>\d{2})$")
_TRAILING_OFFSET_RE = re.compile(r"(?:Z|[+-]\d{2}:?\d{2})$")


@dataclass(frozen=True)
class LineRecord:
    """One line of code at one commit."""

    commit_id: str
    file: str
    type: str
    line: int
    depth: int
    length: int
    author: str
    date: datetime
    time: str
    timezone: str
    datetime: datetime


def parse_offset(value: str) -> Optional[timezone]:
    """
    Parse a UTC offset string into a fixed timezone.

    Accepts 'Z', '+HH:MM' and '+HHMM'. Returns None for a blank value.
    """
    value = (value or "").strip()
    if not value:
        return None
    if value.upper() == "Z":
        return timezone.utc

    match = _OFFSET_RE.match(value)
    if not match:
        raise ValueError(f"Invalid UTC offset: {value!r}")

    delta = timedelta(
        hours=int(match.group("hours")), minutes=int(match.group("minutes"))
    )
    if match.group("sign") == "-":
        delta = -delta
    return timezone(delta)


def parse_timestamp(value: str, default_tz: Optional[timezone] = None) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    A value without an offset is interpreted in default_tz (UTC if None).
    """
    text = (value or "").strip()
    if not text:
        raise ValueError("Empty timestamp")

    tz = None
    match = _TRAILING_OFFSET_RE.search(text)
    # An offset can only follow the time part, never the YYYY-MM-DD date
    if match and match.start() > 10:
        tz = parse_offset(match.group(0))
        text = text[: match.start()]

    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz or default_tz or timezone.utc)
    return dt


def _parse_row_timestamps(row: Dict[str, str]):
    row_tz = parse_offset(row["timezone"])
    date = parse_timestamp(f"{row['date'].strip()}T00:00", default_tz=row_tz)
    moment = parse_timestamp(row["datetime"], default_tz=row_tz)
    return date, moment


def records_from_frame(df: pd.DataFrame) -> List[LineRecord]:
    """
    Convert a raw string DataFrame into LineRecords.

    The whole load fails on the first malformed row: a missing column, a
    non-numeric or out-of-range numeric value, or an unparseable timestamp.

    Raises:
        DatasetLoadError: if any row cannot be converted
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise DatasetLoadError(f"Missing required columns: {', '.join(missing)}")

    numeric = {}
    for column, minimum in NUMERIC_COLUMNS.items():
        values = pd.to_numeric(df[column].str.strip(), errors="coerce")
        bad = values.isna() | (values < minimum) | (values % 1 != 0)
        if bad.any():
            row_no = int(bad.to_numpy().nonzero()[0][0]) + 1
            raise DatasetLoadError(
                f"Row {row_no}: invalid value {df[column].iloc[row_no - 1]!r} "
                f"in column '{column}'"
            )
        numeric[column] = values.astype("int64").tolist()

    records = []
    for index, row in enumerate(df.to_dict("records")):
        try:
            date, moment = _parse_row_timestamps(row)
        except ValueError as e:
            raise DatasetLoadError(f"Row {index + 1}: {e}") from e

        records.append(
            LineRecord(
                commit_id=row["commit"],
                file=row["file"],
                type=row["type"],
                line=numeric["line"][index],
                depth=numeric["depth"][index],
                length=numeric["length"][index],
                author=row["author"],
                date=date,
                time=row["time"],
                timezone=row["timezone"],
                datetime=moment,
            )
        )

    return records


def load_records(path: Union[str, Path]) -> List[LineRecord]:
    """
    Load a per-line change dataset from a CSV file.

    Args:
        path: Path to the CSV file (e.g. 'loc.csv')

    Returns:
        List of LineRecords in file order

    Raises:
        DatasetLoadError: if the file is missing, empty or malformed
    """
    path = Path(path)
    if not path.is_file():
        raise DatasetLoadError(f"Dataset not found: {path}")

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise DatasetLoadError(f"Dataset is empty: {path}") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise DatasetLoadError(f"Failed to parse {path}: {e}") from e

    records = records_from_frame(df)
    logger.info(f"Loaded {len(records):,} line records from {path}")
    return records
