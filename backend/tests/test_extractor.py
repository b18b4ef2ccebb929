from bgmi_core.extractor import extract_records, find_json_array
from bgmi_core.prompts import RecordKind
from bgmi_core.records import ResultRecord, SlotRecord


def test_extracts_array_wrapped_in_prose() -> None:
    text = 'Sure! Here you go: [{"rank":1,"team_members":["A"],"finishes":[3]}] Hope that helps!'

    records = extract_records(text, RecordKind.RESULT)

    assert len(records) == 1
    assert isinstance(records[0], ResultRecord)
    assert records[0].rank == 1
    assert records[0].team_members == ["A"]
    assert records[0].total_finishes == 3


def test_no_bracketed_array_yields_empty() -> None:
    assert extract_records("I could not read this image, sorry.", RecordKind.RESULT) == []
    assert extract_records("", RecordKind.SLOT) == []


def test_malformed_payload_yields_empty() -> None:
    text = '```json\n[{"slot_no": 4, "team_members": ["A", "B"]},]\n```'

    assert extract_records(text, RecordKind.SLOT) == []


def test_deeply_nested_payload_yields_empty() -> None:
    text = "Here: " + "[" * 100000 + "]" * 100000

    assert extract_records(text, RecordKind.RESULT) == []


def test_outermost_brackets_are_used() -> None:
    text = 'Teams: [{"slot_no": 3, "team_members": ["A", "B"]}, {"slot_no": 5, "team_members": []}] done'

    assert find_json_array(text).startswith('[{"slot_no": 3')
    slots = extract_records(text, RecordKind.SLOT)

    assert slots == [
        SlotRecord(slot_no=3, team_members=["A", "B"]),
        SlotRecord(slot_no=5, team_members=[]),
    ]


def test_non_object_items_are_skipped() -> None:
    text = '[1, "two", {"slot_no": "7", "team_members": ["X"]}]'

    slots = extract_records(text, RecordKind.SLOT)

    assert slots == [SlotRecord(slot_no=7, team_members=["X"])]


def test_result_defaults_for_missing_fields() -> None:
    records = extract_records('[{"rank": 2}]', RecordKind.RESULT)

    assert records == [ResultRecord(rank=2, team_members=[], finishes=[], total_finishes=0)]


def test_reported_total_is_trusted_over_finishes() -> None:
    text = '[{"rank": 1, "team_members": ["A", "B"], "finishes": [1, 2], "total_finishes": 5}]'

    record = extract_records(text, RecordKind.RESULT)[0]

    assert record.finishes == [1, 2]
    assert record.total_finishes == 5


def test_total_recomputed_when_not_reported() -> None:
    text = '[{"rank": "3", "team_members": ["A"], "finishes": [2, "4", null, "x"]}]'

    record = extract_records(text, RecordKind.RESULT)[0]

    assert record.rank == 3
    assert record.finishes == [2, 4]
    assert record.total_finishes == 6
