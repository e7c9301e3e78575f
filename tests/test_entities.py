from classbook.models.entities import Booking, BookingInfo, ClassDay, Student


def test_student_from_short_row():
    s = Student.from_row(["4", "Dana"])
    assert s == Student(id="4", name="Dana", instagram="", active=False)


def test_student_active_flag_is_case_insensitive():
    assert Student.from_row(["1", "A", "@a", "TRUE"]).active is True
    assert Student.from_row(["1", "A", "@a", "false"]).active is False


def test_student_to_row_renders_lowercase_bool():
    assert Student("1", "Ann", "@ann", True).to_row() == ["1", "Ann", "@ann", "true"]
    assert Student("2", "Bob", "", False).to_row() == ["2", "Bob", "", "false"]


def test_booking_and_class_day_normalize_dates_on_read():
    b = Booking.from_row(["2024/5/1", "Ann", "1"])
    assert (b.date, b.student_name, b.student_id) == ("2024-05-01", "Ann", "1")
    assert ClassDay.from_row(["2024-5-1"]).date == "2024-05-01"


def test_booking_info_student_names():
    info = BookingInfo("2024-05-01", [Student("1", "Ann"), Student("2", "Bob")])
    assert info.student_names == ["Ann", "Bob"]
