from cblayout.copybook.hierarchy import build_hierarchy
from cblayout.copybook.layout import resolve_layout
from cblayout.copybook.model import Category
from cblayout.copybook.tokenizer import tokenize


def _roots(text: str):
    return resolve_layout(build_hierarchy(tokenize(text.splitlines())))


def _by_name(root, name):
    return next(f for f in root.iter_fields() if f.name == name)


def test_flat_record_positions():
    (rec,) = _roots(
        """
        01 REC-A.
           05 FIELD-A PIC X(5).
           05 FIELD-B PIC 9(3).
        """
    )
    assert (rec.start, rec.end, rec.length) == (1, 8, 8)
    a, b = rec.children
    assert (a.start, a.end, a.length) == (1, 5, 5)
    assert (b.start, b.end, b.length) == (6, 8, 3)
    assert rec.category is Category.GROUP
    assert b.category is Category.NUMERIC


def test_nested_groups_aggregate_child_extent():
    (rec,) = _roots(
        """
        01 REC.
           05 KEY-PART.
              10 BRANCH PIC X(3).
              10 ACCOUNT PIC 9(7).
           05 AMOUNT PIC S9(7)V99 COMP-3.
           05 COUNT-BIN PIC 9(4) COMP.
        """
    )
    key = _by_name(rec, "KEY-PART")
    assert (key.start, key.end, key.length) == (1, 10, 10)
    amount = _by_name(rec, "AMOUNT")
    assert (amount.start, amount.end, amount.length) == (11, 15, 5)
    binary = _by_name(rec, "COUNT-BIN")
    assert (binary.start, binary.end) == (16, 17)
    assert rec.length == 17
    for field in rec.iter_fields():
        assert field.length == field.end - field.start + 1


def test_occurs_group_materializes_elements():
    (rec,) = _roots(
        """
        01 REC.
           05 TABLE-X OCCURS 3.
              10 ITEM PIC X(2).
        """
    )
    table = rec.children[0]
    assert table.length == 6
    assert (table.start, table.end) == (1, 6)
    assert table.children == ()
    assert [e.index for e in table.elements] == [1, 2, 3]
    assert [e.start for e in table.elements] == [1, 3, 5]
    assert [(p.name, p.start, p.end) for p in table.elements[1].fields] == [("ITEM", 3, 4)]


def test_cursor_moves_past_every_occurrence():
    (rec,) = _roots(
        """
        01 REC.
           05 HEAD PIC X(4).
           05 LINES OCCURS 2 TIMES.
              10 QTY  PIC 9(3).
              10 DESC PIC X(7).
           05 TAIL PIC X.
        """
    )
    lines = _by_name(rec, "LINES")
    assert (lines.start, lines.length) == (5, 20)
    assert [e.start for e in lines.elements] == [5, 15]
    second = lines.elements[1].fields
    assert [(p.name, p.start, p.end) for p in second] == [("QTY", 15, 17), ("DESC", 18, 24)]
    tail = _by_name(rec, "TAIL")
    assert tail.start == 25
    assert rec.length == 25


def test_elementary_occurs_lists_each_occurrence():
    (rec,) = _roots(
        """
        01 REC.
           05 CODES PIC X(3) OCCURS 4.
           05 AFTER PIC 9.
        """
    )
    codes = rec.children[0]
    assert codes.length == 12
    assert codes.picture == "X(3)"
    assert [e.start for e in codes.elements] == [1, 4, 7, 10]
    assert codes.elements[3].fields[0].end == 12
    assert rec.children[1].start == 13


def test_nested_occurs_expand_inside_outer_elements():
    (rec,) = _roots(
        """
        01 REC.
           05 OUTER OCCURS 2.
              10 TAG PIC X.
              10 INNER PIC 9(2) OCCURS 3.
        """
    )
    outer = rec.children[0]
    assert outer.length == 14
    second = outer.elements[1]
    assert second.start == 8
    assert [(p.name, p.start) for p in second.fields] == [
        ("TAG", 8),
        ("INNER", 9),
        ("INNER", 11),
        ("INNER", 13),
    ]


def test_redefines_overlays_target_and_restores_cursor():
    (rec,) = _roots(
        """
        01 REC.
           05 DATE-NUM PIC 9(8).
           05 DATE-PARTS REDEFINES DATE-NUM.
              10 YYYY PIC 9(4).
              10 MM   PIC 9(2).
              10 DD   PIC 9(2).
           05 NEXT-ITEM PIC X(2).
        """
    )
    parts = _by_name(rec, "DATE-PARTS")
    assert (parts.start, parts.end) == (1, 8)
    assert parts.redefines == "DATE-NUM"
    assert _by_name(rec, "DD").start == 7
    assert _by_name(rec, "NEXT-ITEM").start == 9
    assert rec.length == 10


def test_unknown_redefines_target_overlays_record_start():
    (rec,) = _roots(
        """
        01 REC.
           05 A PIC X(4).
           05 B REDEFINES NOWHERE PIC X(2).
           05 C PIC X.
        """
    )
    b = _by_name(rec, "B")
    assert (b.start, b.end) == (1, 2)
    assert _by_name(rec, "C").start == 5


def test_root_redefines_share_buffer_start():
    rec_a, rec_b = _roots(
        """
        01 REC-A PIC X(10).
        01 REC-B REDEFINES REC-A PIC 9(10).
        """
    )
    assert (rec_a.start, rec_a.length) == (1, 10)
    assert (rec_b.start, rec_b.length) == (1, 10)


def test_group_usage_applies_to_children():
    (rec,) = _roots(
        """
        01 REC.
           05 TOTALS COMP-3.
              10 T1 PIC S9(5).
              10 T2 PIC S9(3) DISPLAY.
        """
    )
    assert _by_name(rec, "T1").length == 3
    assert _by_name(rec, "T1").usage == "COMP-3"
    assert _by_name(rec, "T2").length == 3
    assert _by_name(rec, "T2").start == 4


def test_condition_names_stay_as_metadata():
    (rec,) = _roots(
        """
        01 REC.
           05 STATUS PIC X(2).
              88 STATUS-OK VALUE 'OK'.
        """
    )
    assert [f.name for f in rec.iter_fields()] == ["REC", "STATUS"]
    status = rec.children[0]
    assert status.length == 2
    assert status.condition_names[0].name == "STATUS-OK"


def test_empty_group_has_zero_length():
    (rec,) = _roots(
        """
        01 REC.
           05 EMPTY-GRP.
           05 A PIC X(3).
        """
    )
    empty = rec.children[0]
    assert (empty.start, empty.length, empty.end) == (1, 0, 0)
    assert rec.children[1].start == 1


def test_usage_sized_items_without_picture_take_their_bytes():
    (rec,) = _roots(
        """
        01 REC.
           05 RATE COMP-2.
           05 FLAG PIC X.
           05 IX USAGE INDEX.
           05 PTR POINTER.
           05 RATES COMP-1 OCCURS 3.
        """
    )
    rate, flag, ix, ptr, rates = rec.children
    assert (rate.start, rate.length, rate.category) == (1, 8, Category.NUMERIC)
    assert not rate.is_group
    assert flag.start == 9
    assert (ix.start, ix.length) == (10, 4)
    assert (ptr.start, ptr.length, ptr.category) == (14, 4, Category.ALPHANUMERIC)
    assert (rates.start, rates.length) == (18, 12)
    assert [e.start for e in rates.elements] == [18, 22, 26]
    assert rec.length == 29


def test_float_usage_on_group_sizes_children():
    (rec,) = _roots(
        """
        01 REC.
           05 FLOATS COMP-1.
              10 LOW.
              10 HIGH.
        """
    )
    floats = rec.children[0]
    assert floats.is_group
    low, high = floats.children
    assert (low.start, low.length, high.start) == (1, 4, 5)
    assert floats.length == 8
