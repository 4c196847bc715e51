"""Tests for DirectAccessIndex: fixed-stride scan index lookups."""

import pytest

from finnigan_raw.parser.byte_cursor import ByteCursor
from finnigan_raw.parser.errors import InconsistentRecordSize, OutOfRange, TruncatedRead
from finnigan_raw.parser.field_reader import PascalUtf16, encode, fixed_size, schema
from finnigan_raw.parser.scan_index import DirectAccessIndex
from finnigan_raw.parser.schemas import SCAN_INDEX_ENTRY, SCAN_INDEX_ENTRY_WIDE

from raw_builder import counted


INDEX_ADDR = 24


def _build_index(layout, first_scan: int, count: int, addr: int = INDEX_ADDR) -> bytes:
    entries = [
        encode(layout, {
            "offset": 100 * i,
            "long_offset": 0x1_0000_0000 + 100 * i,
            "index": i,
            "scan_event": i % 3,
            "next": i + 1,
            "data_size": 100,
            "start_time": 0.1 * i,
            "base_mz": 300.0 + i,
            "low_mz": 100.0,
            "high_mz": 2000.0,
        })
        for i in range(count)
    ]
    return b"\xee" * addr + b"".join(entries)


def _index(layout=SCAN_INDEX_ENTRY, first_scan: int = 1, count: int = 20) -> DirectAccessIndex:
    data = _build_index(layout, first_scan, count)
    return DirectAccessIndex(
        ByteCursor.from_bytes(data), INDEX_ADDR, first_scan, first_scan + count - 1, layout,
    )


def test_record_sizes():
    assert fixed_size(SCAN_INDEX_ENTRY) == 72
    assert fixed_size(SCAN_INDEX_ENTRY_WIDE) == 88


def test_entry_fields():
    index = _index()
    entry = index.entry(5)
    assert entry.scan_number == 5
    assert entry.index == 4
    assert entry.offset == 400
    assert entry.scan_event == 1
    assert entry.next == 5
    assert entry.start_time == pytest.approx(0.4)
    assert entry.base_mz == 304.0
    assert entry.byte_offset == INDEX_ADDR + 4 * 72


def test_record_size_learned_from_first_entry():
    assert _index().record_size == 72
    assert _index(SCAN_INDEX_ENTRY_WIDE).record_size == 88


@pytest.mark.parametrize("layout", [SCAN_INDEX_ENTRY, SCAN_INDEX_ENTRY_WIDE])
def test_stride_invariant(layout):
    index = _index(layout)
    for n1 in (1, 4, 11):
        for n2 in (1, 7, 20):
            delta = index.entry(n2).byte_offset - index.entry(n1).byte_offset
            assert delta == (n2 - n1) * index.record_size


def test_wide_entries_use_64_bit_offset():
    entry = _index(SCAN_INDEX_ENTRY_WIDE).entry(3)
    assert entry.offset == 0x1_0000_0000 + 200


def test_first_scan_other_than_one():
    index = _index(first_scan=50, count=5)
    assert index.entry(50).index == 0
    assert index.entry(54).index == 4
    assert len(index) == 5


def test_entries_contiguous_run():
    index = _index()
    entries = index.entries(3, 6)
    assert [e.scan_number for e in entries] == [3, 4, 5, 6]
    assert [e.index for e in entries] == [2, 3, 4, 5]
    assert entries == [index.entry(n) for n in range(3, 7)]


def test_entries_empty_when_reversed():
    assert _index().entries(6, 3) == []


@pytest.mark.parametrize("n", [0, 21])
def test_out_of_range(n):
    index = _index()
    with pytest.raises(OutOfRange, match=f"Scan number {n} is outside the range \\[1, 20\\]"):
        index.entry(n)


def test_entries_out_of_range():
    index = _index()
    with pytest.raises(OutOfRange):
        index.entries(19, 21)
    with pytest.raises(OutOfRange):
        index.entries(0, 2)


def test_inconsistent_record_size():
    layout = schema(("label", PascalUtf16()))
    data = b"\x00" * INDEX_ADDR + encode(layout, {"label": "a"}) + encode(layout, {"label": "abcd"})
    index = DirectAccessIndex(ByteCursor.from_bytes(data), INDEX_ADDR, 1, 2, layout)
    with pytest.raises(InconsistentRecordSize, match="consumed 12 bytes, expected 6") as exc:
        index.entry(2)
    assert exc.value.offset == INDEX_ADDR + 6


def test_truncated_index():
    data = _build_index(SCAN_INDEX_ENTRY, 1, 3)
    index = DirectAccessIndex(ByteCursor.from_bytes(data), INDEX_ADDR, 1, 4, SCAN_INDEX_ENTRY)
    assert index.entry(3).index == 2
    with pytest.raises(TruncatedRead):
        index.entry(4)


def test_unrelated_counted_prefix_does_not_matter():
    # The index has no count field of its own; a preceding stream is ignored.
    prefix = counted([b"\x01\x02"])
    data = prefix + _build_index(SCAN_INDEX_ENTRY, 1, 2, addr=0)
    index = DirectAccessIndex(ByteCursor.from_bytes(data), len(prefix), 1, 2, SCAN_INDEX_ENTRY)
    assert index.entry(2).offset == 100
