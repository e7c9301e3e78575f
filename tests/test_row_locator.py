from classbook.repositories.row_locator import RowRef, TableRowLocator


def test_first_data_row_sits_below_header():
    ref = RowRef(offset=0)
    assert ref.row_number == 2
    assert (ref.start_index, ref.end_index) == (1, 2)


def test_ranges_are_quoted_and_skip_header():
    loc = TableRowLocator("Bookings", columns=3)
    assert loc.data_range() == "'Bookings'!A2:C"
    assert loc.data_range(columns=1) == "'Bookings'!A2:A"
    assert loc.append_range() == "'Bookings'!A:C"
    assert loc.row_range(loc.ref(3)) == "'Bookings'!A5:C5"
    assert loc.cell_range(loc.ref(1), 2) == "'Bookings'!B3"


def test_tab_names_with_quotes_are_escaped():
    loc = TableRowLocator("Tom's days", columns=1)
    assert loc.data_range() == "'Tom''s days'!A2:A"


def test_find_and_find_all_return_offsets():
    loc = TableRowLocator("Roster", columns=4)
    rows = [["1", "Ann"], ["2", "Bob"], ["3", "Ann"]]
    assert loc.find(rows, lambda r: r[1] == "Bob") == RowRef(1)
    assert loc.find(rows, lambda r: r[1] == "Zed") is None
    assert loc.find_all(rows, lambda r: r[1] == "Ann") == [RowRef(0), RowRef(2)]


def test_delete_requests_run_bottom_up():
    loc = TableRowLocator("Bookings", columns=3)
    reqs = loc.delete_requests(7, [loc.ref(0), loc.ref(4), loc.ref(2)])
    starts = [r["deleteDimension"]["range"]["startIndex"] for r in reqs]
    assert starts == [5, 3, 1]
    first = reqs[0]["deleteDimension"]["range"]
    assert first == {"sheetId": 7, "dimension": "ROWS", "startIndex": 5, "endIndex": 6}


def test_sort_request_excludes_header():
    loc = TableRowLocator("Roster", columns=4)
    req = loc.sort_request(9)["sortRange"]
    assert req["range"] == {"sheetId": 9, "startRowIndex": 1, "startColumnIndex": 0, "endColumnIndex": 4}
    assert req["sortSpecs"] == [{"dimensionIndex": 0, "sortOrder": "ASCENDING"}]
