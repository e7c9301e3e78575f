# classbook/repositories/row_locator.py
"""
Maps positions in a fetched data range back to sheet coordinates.

Data ranges are read starting below the header, so the row at offset 0 of
the fetched values is sheet row ``header_rows + 1`` (1-based), which is grid
index ``header_rows`` (0-based) in batchUpdate requests.
"""
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

from gspread.utils import absolute_range_name, rowcol_to_a1

from classbook.config import HEADER_ROWS

Row = Sequence[str]


def _column_letter(col: int) -> str:
    return rowcol_to_a1(1, col).rstrip("0123456789")


@dataclass(frozen=True)
class RowRef:
    offset: int                  # 0-based position within the data rows
    header_rows: int = HEADER_ROWS

    @property
    def row_number(self) -> int:
        """1-based sheet row, as used in A1 notation."""
        return self.offset + self.header_rows + 1

    @property
    def start_index(self) -> int:
        return self.row_number - 1

    @property
    def end_index(self) -> int:
        return self.row_number


class TableRowLocator:
    def __init__(self, tab: str, columns: int, header_rows: int = HEADER_ROWS):
        self.tab = tab
        self.columns = columns
        self.header_rows = header_rows

    @property
    def last_column(self) -> str:
        return _column_letter(self.columns)

    def data_range(self, columns: Optional[int] = None) -> str:
        last = _column_letter(columns or self.columns)
        return absolute_range_name(self.tab, f"A{self.header_rows + 1}:{last}")

    def append_range(self) -> str:
        return absolute_range_name(self.tab, f"A:{self.last_column}")

    def row_range(self, ref: RowRef) -> str:
        n = ref.row_number
        return absolute_range_name(self.tab, f"A{n}:{self.last_column}{n}")

    def cell_range(self, ref: RowRef, col: int) -> str:
        return absolute_range_name(self.tab, rowcol_to_a1(ref.row_number, col))

    def ref(self, offset: int) -> RowRef:
        return RowRef(offset=offset, header_rows=self.header_rows)

    def find(self, rows: Iterable[Row], predicate: Callable[[Row], bool]) -> Optional[RowRef]:
        for i, row in enumerate(rows):
            if predicate(row):
                return self.ref(i)
        return None

    def find_all(self, rows: Iterable[Row], predicate: Callable[[Row], bool]) -> List[RowRef]:
        return [self.ref(i) for i, row in enumerate(rows) if predicate(row)]

    @staticmethod
    def delete_requests(sheet_id: int, refs: Iterable[RowRef]) -> List[dict]:
        # Bottom-up so earlier deletes never shift rows still to be deleted
        ordered = sorted(refs, key=lambda r: r.row_number, reverse=True)
        return [
            {
                "deleteDimension": {
                    "range": {
                        "sheetId": sheet_id,
                        "dimension": "ROWS",
                        "startIndex": r.start_index,
                        "endIndex": r.end_index,
                    }
                }
            }
            for r in ordered
        ]

    def sort_request(self, sheet_id: int, sort_col: int = 0) -> dict:
        return {
            "sortRange": {
                "range": {
                    "sheetId": sheet_id,
                    "startRowIndex": self.header_rows,
                    "startColumnIndex": 0,
                    "endColumnIndex": self.columns,
                },
                "sortSpecs": [{"dimensionIndex": sort_col, "sortOrder": "ASCENDING"}],
            }
        }
