"""Tests for field projection."""

from staybase.schemas.records import Record
from staybase.services.projector import project, project_record

ALLOWED = ("Guest_Name", "Guest_Email", "Arrival_Date")


class TestProject:
    def test_strips_fields_not_allowed(self):
        records = [Record(id="rec1", fields={"Guest_Name": "Ann", "Payout_Amount": 900})]
        result = project(records, ALLOWED)
        assert result == [Record(id="rec1", fields={"Guest_Name": "Ann"})]

    def test_missing_fields_stay_missing(self):
        result = project([Record(id="rec1", fields={"Guest_Email": "ann@example.com"})], ALLOWED)
        assert result[0].fields == {"Guest_Email": "ann@example.com"}
        assert "Guest_Name" not in result[0].fields

    def test_values_are_not_coerced(self):
        fields = {"Guest_Name": ["linked", "values"], "Arrival_Date": None, "Guest_Email": 42}
        result = project_record(Record(id="rec1", fields=fields), ALLOWED)
        assert result.fields == fields

    def test_accepts_raw_dicts(self):
        result = project(
            [{"id": "rec1", "fields": {"Guest_Name": "Ann", "Secret": "x"}}, {"id": "rec2"}],
            ALLOWED,
        )
        assert result == [
            Record(id="rec1", fields={"Guest_Name": "Ann"}),
            Record(id="rec2", fields={}),
        ]

    def test_preserves_record_order_and_ids(self):
        records = [Record(id=f"rec{i}", fields={}) for i in range(5)]
        assert [r.id for r in project(records, ALLOWED)] == ["rec0", "rec1", "rec2", "rec3", "rec4"]

    def test_empty_allow_list(self):
        result = project([Record(id="rec1", fields={"Guest_Name": "Ann"})], ())
        assert result[0].fields == {}

    def test_empty_input(self):
        assert project([], ALLOWED) == []
