from bgmi_core.export import to_csv
from bgmi_core.records import PointsRow


def test_csv_has_header_and_rows_in_table_order() -> None:
    rows = [
        PointsRow(slot_no=None, team_members=["A", "B"], total_finishes=14, position_points=10, total_points=24, rank=1),
        PointsRow(slot_no=7, team_members=["Solo"], total_finishes=8, position_points=6, total_points=14, rank=2),
    ]

    lines = to_csv(rows).split("\n")

    assert lines == [
        "Slot No,Team Members,Finishes,Position Points,Total Points",
        ',"A, B",14,10,24',
        '7,"Solo",8,6,14',
    ]


def test_embedded_quotes_are_escaped() -> None:
    row = PointsRow(slot_no=1, team_members=['The "Ace"'], total_finishes=0, position_points=0, total_points=0, rank=None)

    assert to_csv([row]).split("\n")[1] == '1,"The ""Ace""",0,0,0'


def test_empty_table_is_header_only() -> None:
    assert to_csv([]) == "Slot No,Team Members,Finishes,Position Points,Total Points"
