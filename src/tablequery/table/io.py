"""
Reading and writing tables from files via pyarrow's format readers.
"""

import logging
from pathlib import Path
from typing import Union

import pyarrow as pa
import pyarrow.csv as pa_csv
import pyarrow.json as pa_json
import pyarrow.parquet as pq

from ..exceptions import TableLoadError
from .table import Table

logger = logging.getLogger(__name__)

CSV_SUFFIXES = (".csv", ".tsv")
PARQUET_SUFFIXES = (".parquet", ".pq")
JSON_SUFFIXES = (".json", ".jsonl", ".ndjson")


def load_table(path: Union[str, Path]) -> Table:
    """
    Load a table from a CSV, Parquet or newline-delimited JSON file.

    Args:
        path: File path; the format is chosen from the suffix

    Returns:
        Loaded Table

    Raises:
        TableLoadError: If the file is missing, unreadable or of an unknown format
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if not path.exists():
        raise TableLoadError(f"File not found: {path}")

    try:
        if suffix in CSV_SUFFIXES:
            parse_options = pa_csv.ParseOptions(delimiter="\t" if suffix == ".tsv" else ",")
            data = pa_csv.read_csv(path, parse_options=parse_options)
        elif suffix in PARQUET_SUFFIXES:
            data = pq.read_table(path)
        elif suffix in JSON_SUFFIXES:
            data = pa_json.read_json(path)
        else:
            raise TableLoadError(f"Unsupported table format {suffix!r}: {path}")
    except pa.ArrowException as e:
        raise TableLoadError(f"Failed to read {path}: {e}") from e

    logger.debug(f"Loaded {path} ({data.num_rows} rows, {data.num_columns} columns)")
    return Table(data)


def write_table(table: Union[Table, pa.Table], path: Union[str, Path]) -> Path:
    """
    Write a table to CSV or Parquet, chosen from the file suffix.

    Returns:
        The path written
    """
    path = Path(path)
    suffix = path.suffix.lower()
    data = Table.wrap(table).data

    try:
        if suffix == ".csv":
            pa_csv.write_csv(data, path)
        elif suffix in PARQUET_SUFFIXES:
            pq.write_table(data, path)
        else:
            raise TableLoadError(f"Unsupported output format {suffix!r}: {path}")
    except pa.ArrowException as e:
        raise TableLoadError(f"Failed to write {path}: {e}") from e

    logger.debug(f"Wrote {data.num_rows} rows to {path}")
    return path
