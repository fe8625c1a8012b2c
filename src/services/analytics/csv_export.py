"""
CSV formatting for the analytics export.
"""

import csv
import io
from typing import Any, Iterable, List, Sequence

from src.utils.custom_utils import to_iso_utc

CSV_COLUMNS = [
    "Timestamp", "Article", "Brand", "Country", "City",
    "Browser", "OS", "Device", "Referrer",
]
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
CSV_FILENAME = "analytics.csv"
EXPORT_PAGE_SIZE = 1000


def format_csv_rows(rows: Iterable[Sequence[Any]]) -> str:
    """
    Render rows as CSV text.

    Fields containing a comma, double quote or newline are quoted with inner
    quotes doubled; None renders as an empty field.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()


def format_csv_row(values: Sequence[Any]) -> str:
    return format_csv_rows([values])


CSV_HEADER = format_csv_row(CSV_COLUMNS)


def page_view_to_csv_values(row) -> List[Any]:
    """
    Map an export row to the CSV columns.

    The row carries no address field, so none can leak into the file.
    """
    return [
        to_iso_utc(row.timestamp),
        row.article_title,
        row.brand_name,
        row.country,
        row.city,
        row.browser,
        row.os,
        row.device,
        row.referrer,
    ]
