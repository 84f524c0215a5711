"""
Spreadsheet Row Parser
Turns the raw cell matrix of an uploaded sheet into row records for the
two fixed layouts: per-session results and cumulative ("shamel") exams.
"""
import io
import logging
from typing import Any, List, Sequence

import pandas as pd

from schemas.imports import SessionRow, ShamelRow

logger = logging.getLogger(__name__)

SESSION_FORMAT = "session"
SHAMEL_FORMAT = "shamel"

# Fixed column order of each layout
SESSION_COLUMNS = [
    "id", "name", "student_phone", "parent_phone",
    "attendance", "payment", "quiz_mark", "time", "hw_status",
]
SHAMEL_COLUMNS = ["id", "name", "parent_phone", "attendance", "payment", "quiz_mark"]

LAYOUTS = {
    # format: (columns, header rows, row schema)
    SESSION_FORMAT: (SESSION_COLUMNS, 1, SessionRow),
    SHAMEL_FORMAT: (SHAMEL_COLUMNS, 2, ShamelRow),
}


class UnknownFormatError(ValueError):
    pass


def _layout(fmt: str):
    try:
        return LAYOUTS[fmt]
    except KeyError:
        raise UnknownFormatError(f"Unknown sheet format '{fmt}'") from None


def parse_rows(matrix: Sequence[Sequence[Any]], fmt: str) -> List[Any]:
    """
    Map every data row of the matrix onto the layout's columns.
    Short rows are padded with blanks; extra cells are ignored.
    Header rows are skipped, nothing else is filtered here.
    """
    columns, header_rows, row_schema = _layout(fmt)
    rows = []
    for cells in list(matrix)[header_rows:]:
        cells = list(cells)[:len(columns)]
        cells += [None] * (len(columns) - len(cells))
        rows.append(row_schema(**dict(zip(columns, cells))))
    return rows


def accepted_rows(rows):
    """Keep rows carrying student code, name and parent phone; drop the rest silently"""
    kept = []
    for row in rows:
        if row.is_complete():
            kept.append(row)
        else:
            logger.debug("Skipping row with missing data: %s", row.model_dump())
    return kept


def read_workbook(contents: bytes, filename: str) -> List[List[Any]]:
    """First worksheet of an .xlsx/.xls upload as a plain cell matrix (no header inference)"""
    # openpyxl = .xlsx (new format), xlrd = .xls (old format)
    engine = "openpyxl" if filename.lower().endswith(".xlsx") else "xlrd"
    df = pd.read_excel(io.BytesIO(contents), header=None, dtype=object, engine=engine)
    return df.values.tolist()


def column_layouts():
    return {
        SESSION_FORMAT: {"header_rows": 1, "columns": SESSION_COLUMNS},
        SHAMEL_FORMAT: {"header_rows": 2, "columns": SHAMEL_COLUMNS},
    }
