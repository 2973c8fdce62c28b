import csv
import logging
import pathlib
import re
import typing

import pandas as pd

from .errors import ParseError
from .roi import ROI

PATIENT_ID_COLUMN = "Patient ID"

# Every volume header, in ROI then phase order
VOLUME_COLUMNS = [column for roi in ROI for column in roi.column_names()]

# Plain decimal or scientific notation, or nan/inf spelled out; no digit-group underscores
_NUMBER_PATTERN = re.compile(
    r"""
    ^[+-]?
    (?:
        (?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?
        |nan
        |inf(?:inity)?
    )$
    """,
    re.VERBOSE | re.IGNORECASE,
)


def _parse_volume(cell: str, decimal: str) -> float:
    """
    Convert one raw cell into a float:
      - blank → NaN (missing measurement)
      - otherwise the text must be a number, "nan"/"inf" included
      - with a decimal separator other than ".", a "." is rejected
    """
    text = cell.strip()
    if not text:
        return float("nan")
    if decimal != ".":
        if "." in text:
            raise ValueError(f"expected {decimal!r} as decimal separator")
        text = text.replace(decimal, ".")
    if not _NUMBER_PATTERN.match(text):
        raise ValueError(f"not a number: {text!r}")
    return float(text)


def _scan_data_lines(csv_path: typing.Union[str, pathlib.Path], delimiter: str) -> list[int]:
    """
    Check that every non-blank row has as many fields as the header.
    Returns the file line number of each data row, in order.
    """
    data_lines: list[int] = []
    try:
        with open(csv_path, newline="", encoding="utf-8-sig") as handle:
            reader = csv.reader(handle, delimiter=delimiter)
            header = next(reader, None)
            if header is None:
                raise ParseError(f"Input file {str(csv_path)!r} is empty")
            for row in reader:
                # blank lines are skipped by the table reader as well
                if not row:
                    continue
                if len(row) != len(header):
                    raise ParseError(
                        f"Line {reader.line_num}: expected {len(header)} fields, found {len(row)}"
                    )
                data_lines.append(reader.line_num)
    except FileNotFoundError as e:
        raise ParseError(f"Input file not found: {csv_path}") from e
    except (csv.Error, UnicodeDecodeError, OSError) as e:
        raise ParseError(f"Failed to read {str(csv_path)!r}: {e}") from e
    return data_lines


def load_volume_table(
    csv_path: typing.Union[str, pathlib.Path],
    delimiter: str = ";",
    decimal: str = ".",
) -> pd.DataFrame:
    """
    Read the volume table into a DataFrame:
      - first row = header, headers are stripped of surrounding whitespace
      - every row must have exactly as many fields as the header
      - `Patient ID` is kept as text and must be present
      - every volume column present is converted to float64, blank cells → NaN
    Any unreadable file, malformed row or non-numeric volume raises ParseError;
    nothing is skipped.
    """
    data_lines = _scan_data_lines(csv_path, delimiter)
    try:
        df = pd.read_csv(
            csv_path,
            sep=delimiter,
            header=0,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError as e:
        raise ParseError(f"Input file {str(csv_path)!r} is empty") from e
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise ParseError(f"Failed to read {str(csv_path)!r}: {e}") from e

    if len(df) != len(data_lines):
        raise ParseError(
            f"Failed to read {str(csv_path)!r}: expected {len(data_lines)} rows, read {len(df)}"
        )

    # CLEAN headers
    df.columns = df.columns.str.strip()

    if PATIENT_ID_COLUMN not in df.columns:
        raise ParseError(
            f"Input file {str(csv_path)!r} is missing the {PATIENT_ID_COLUMN!r} column"
        )

    df[PATIENT_ID_COLUMN] = df[PATIENT_ID_COLUMN].str.strip()

    for column in VOLUME_COLUMNS:
        if column not in df.columns:
            continue
        values: list[float] = []
        for line, cell in zip(data_lines, df[column]):
            try:
                values.append(_parse_volume(cell, decimal))
            except ValueError as e:
                raise ParseError(
                    f"Line {line}: invalid number {cell!r} in column {column!r}"
                ) from e
        df[column] = pd.Series(values, index=df.index, dtype="float64")

    logging.debug(f"Loaded {len(df)} rows with columns {list(df.columns)}")
    return df
