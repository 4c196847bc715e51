"""End-to-end RawFile tests: synthetic files, plus an optional real-file check."""

import logging
import os
from pathlib import Path

import pytest

from finnigan_raw import (
    Activation,
    CalibratedConverter,
    DecodeError,
    IdentityConverter,
    OutOfRange,
    RawFile,
    ReaderConfig,
    TruncatedRead,
    open_raw,
)
from finnigan_raw.models.constants import GenericDataType

from raw_builder import (
    build_raw,
    error_entry,
    packet,
    peak_list,
    profile,
    scan_event,
    template,
)


RAW_FILE = os.environ.get("FINNIGAN_RAW_FILE")
RUN_HEADER_ADDR = os.environ.get("FINNIGAN_RUN_HEADER_ADDR")

DESCRIPTORS = [
    (GenericDataType.SECTION, 0, "Scan Settings"),
    (GenericDataType.FLOAT, 0, "Ion Injection Time (ms):"),
    (GenericDataType.SHORT, 0, "Charge State:"),
]


def _build_image(version: int = 63, **kwargs):
    """Four scans: MS1 profile, two dependent MS2 scans, a calibrated MS1 scan."""
    events = [
        scan_event(version, ms_power=1),
        scan_event(version, ms_power=2, dependent=True, activation=0, reactions=((445.12, 35.0),)),
        scan_event(version, ms_power=2, dependent=True, reactions=((600.0, 35.0),)),
        scan_event(version, ms_power=1, coefficients=(99.0, 0.0, 1.0e6, 0.0)),
    ]
    packets = [
        packet(
            profile(445.0, 0.05, [(0, 0.0, [1.0, 5.0, 40.0, 8.0])]),
            peak_list([(445.1, 40.0)]),
            low_mz=440.0,
            high_mz=450.0,
        ),
        packet(peaks_body=peak_list([(200.0, 3.0), (300.0, 7.0)])),
        packet(peaks_body=peak_list([(250.0, 1.0)])),
        packet(
            profile(1000.0, 10.0, [(0, 0.5, [1.0, 2.0, 3.0])], layout=1),
            layout=1,
            low_mz=970.0,
            high_mz=1001.0,
        ),
    ]
    return build_raw(
        version,
        events,
        packets,
        errors=[error_entry(0.5, "Pump pressure low"), error_entry(3.0, "Spray unstable")],
        templates=[[template(version), template(version, ms_power=2)], [template(version)]],
        descriptors=DESCRIPTORS,
        params=[
            {"Ion Injection Time (ms):": 10.0, "Charge State:": 0},
            {"Ion Injection Time (ms):": 50.0, "Charge State:": 2},
            {"Ion Injection Time (ms):": 50.0, "Charge State:": 3},
            {"Ion Injection Time (ms):": 1.0, "Charge State:": 0},
        ],
        **kwargs,
    )


@pytest.fixture
def image():
    return _build_image()


@pytest.fixture
def raw_path(tmp_path, image):
    path = tmp_path / "sample.raw"
    path.write_bytes(image.data)
    return path


def _open(path, image, config=None) -> RawFile:
    raw = RawFile.open(path, config)
    version = raw.read_file_header().version
    raw.read_address_directory(version, image.run_header_addr)
    return raw


def test_open_and_close(raw_path):
    with open_raw(raw_path) as raw:
        assert not raw.closed
        assert raw.read_file_header().version == 63
    assert raw.closed


def test_open_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        RawFile.open(tmp_path / "missing.raw")


def test_bad_magic_closes_handle(tmp_path, image):
    path = tmp_path / "bad_magic.raw"
    path.write_bytes(b"\x00\x00" + image.data[2:])
    with pytest.raises(DecodeError, match="Expected file magic"):
        with RawFile.open(path) as raw:
            raw.read_file_header()
    assert raw.closed


def test_truncated_file_closes_handle(tmp_path, image):
    path = tmp_path / "truncated.raw"
    path.write_bytes(image.data[:500])
    with pytest.raises(TruncatedRead):
        with RawFile.open(path) as raw:
            raw.read_file_header()
    assert raw.closed


def test_directory_required_first(raw_path):
    with RawFile.open(raw_path) as raw:
        with pytest.raises(ValueError, match="call read_address_directory"):
            raw.index_entry(1)
        with pytest.raises(ValueError, match="call read_address_directory"):
            raw.scan_events_upto(1)


def test_address_directory(raw_path, image):
    with _open(raw_path, image) as raw:
        directory = raw.directory
        assert directory.first_scan == 1
        assert directory.last_scan == 4
        assert directory.scan_index_addr == image.scan_index_addr
        assert directory.trailer_addr == image.trailer_addr
        assert directory.params_addr == image.params_addr
        assert directory.scan_data_addr == image.data_addr
        assert raw.format_version == 63


def test_index_lookup(raw_path, image):
    with _open(raw_path, image) as raw:
        entry = raw.index_entry(3)
        assert entry.offset == image.packet_offsets[2]
        assert entry.start_time == 1.5
        entries = raw.index_entries(1, 4)
        assert [e.offset for e in entries] == image.packet_offsets
        with pytest.raises(OutOfRange):
            raw.index_entry(0)
        with pytest.raises(OutOfRange):
            raw.index_entry(5)


def test_scan_events(raw_path, image):
    with _open(raw_path, image) as raw:
        events = raw.scan_events_upto(2)
        assert len(events) == 2
        assert not events.recovered
        assert [e.ms_power for e in events] == [1, 2]
        assert raw.scan_event(4).coefficients == (99.0, 0.0, 1.0e6, 0.0)
        assert [e.ms_power for e in raw.iter_scan_events()] == [1, 2, 2, 1]
        with pytest.raises(OutOfRange):
            raw.scan_event(5)


def test_zero_trailer_count_is_recovered(tmp_path, caplog):
    image = _build_image(trailer_count=0)
    path = tmp_path / "zero.raw"
    path.write_bytes(image.data)
    with _open(path, image) as raw:
        with caplog.at_level(logging.WARNING):
            events = raw.scan_events_upto(4)
    assert len(events) == 4
    assert events.recovered
    assert events.anomalies[0].offset == image.trailer_addr
    assert "scan event trailer" in caplog.text


def test_error_log_and_hierarchy(raw_path, image):
    with _open(raw_path, image) as raw:
        log = raw.error_log()
        assert [e.message for e in log] == ["Pump pressure low", "Spray unstable"]
        hierarchy = raw.scan_event_hierarchy()
        assert [len(segment) for segment in hierarchy] == [2, 1]
        assert hierarchy[0][1].preamble[6] == 2


def test_scan_parameters(raw_path, image):
    with _open(raw_path, image) as raw:
        header = raw.scan_parameters_header()
        assert [d.label for d in header.descriptors] == [d[2] for d in DESCRIPTORS]
        params = raw.scan_parameters_upto(4, header)
        assert [p.charge_state for p in params] == [None, 2, 3, None]
        assert params[1]["Ion Injection Time (ms):"] == 50.0
        assert len(raw.scan_parameters_upto(2)) == 2


def test_zero_parameter_count_is_recovered(tmp_path):
    image = _build_image(params_count=0)
    path = tmp_path / "zero-params.raw"
    path.write_bytes(image.data)
    with _open(path, image) as raw:
        params = raw.scan_parameters_upto(3)
    assert params.recovered
    assert [p.charge_state for p in params] == [None, 2, 3]


def test_decode_profile_scan(raw_path, image):
    with _open(raw_path, image) as raw:
        header, prof, peaks = raw.decode_scan(1)
        assert header.low_mz == 440.0
        assert isinstance(prof.converter, IdentityConverter)
        assert [y for _, y in prof.bins()] == [1.0, 5.0, 40.0, 8.0]
        assert [x for x, _ in prof.bins()] == pytest.approx([445.0, 445.05, 445.1, 445.15])
        assert peaks[0].intensity == 40.0


def test_decode_centroid_scan(raw_path, image):
    with _open(raw_path, image) as raw:
        events = raw.scan_events_upto(2)
        scan = raw.decode_scan(2, events[1])
        assert scan.profile is None
        assert [p.position for p in scan.peaks] == [200.0, 300.0]


def test_decode_calibrated_scan(raw_path, image):
    with _open(raw_path, image) as raw:
        scan = raw.decode_scan(4)
        assert isinstance(scan.converter, CalibratedConverter)
        result = scan.profile.bins()
        # m = 1e6 / f, fudge 0.5 added to each bin
        assert [y for _, y in result] == [3.5, 2.5, 1.5]
        assert [x for x, _ in result] == pytest.approx([1.0e6 / 1020.0, 1.0e6 / 1010.0, 1000.0])


def test_parent_scan(raw_path, image):
    with _open(raw_path, image) as raw:
        events = raw.scan_events_upto(4)
        assert raw.parent_scan(2, events) == 1
        assert raw.parent_scan(3, events) == 1
        assert raw.parent_scan(1, events) is None
        assert raw.parent_scan(4, events) is None
        with pytest.raises(OutOfRange):
            raw.parent_scan(3, events[:2])


def test_precursor_peak(raw_path, image):
    with _open(raw_path, image) as raw:
        events = raw.scan_events_upto(4)
        peak = raw.precursor_peak(2, events)
        assert peak.position == pytest.approx(445.1)
        assert peak.intensity == 40.0
        assert raw.precursor_peak(1, events) is None
        assert raw.precursor_peak(3, events) is None


def test_precursor_tolerance_from_config(raw_path, image):
    with _open(raw_path, image, ReaderConfig(precursor_tolerance=0.01)) as raw:
        events = raw.scan_events_upto(2)
        assert raw.precursor_peak(2, events) is None
        assert raw.precursor_peak(2, events, tolerance=0.05) is not None


def test_activation_override(raw_path, image):
    with _open(raw_path, image, ReaderConfig(activation_override=Activation.HCD)) as raw:
        assert raw.scan_event(2).activation is Activation.HCD
    with _open(raw_path, image) as raw:
        assert raw.scan_event(2).activation is Activation.CID


def test_wide_layout_end_to_end(tmp_path):
    image = _build_image(66)
    path = tmp_path / "wide.raw"
    path.write_bytes(image.data)
    with _open(path, image) as raw:
        assert raw.directory.wide
        assert raw.index_entry(4).offset == image.packet_offsets[3]
        events = raw.scan_events_upto(4)
        assert len(events[0].preamble) == 136
        assert raw.precursor_peak(2, events).intensity == 40.0


@pytest.mark.skipif(
    not (RAW_FILE and RUN_HEADER_ADDR and Path(RAW_FILE).exists()),
    reason="set FINNIGAN_RAW_FILE and FINNIGAN_RUN_HEADER_ADDR to run against a real file",
)
def test_real_file_integration():
    with open_raw(RAW_FILE) as raw:
        version = raw.read_file_header().version
        directory = raw.read_address_directory(version, int(RUN_HEADER_ADDR, 0))
        assert directory.first_scan <= directory.last_scan

        last = min(directory.last_scan, directory.first_scan + 9)
        entries = raw.index_entries(directory.first_scan, last)
        for a, b in zip(entries, entries[1:]):
            assert b.byte_offset - a.byte_offset == entries[1].byte_offset - entries[0].byte_offset

        events = raw.scan_events_upto(last - directory.first_scan + 1)
        for n, event in zip(range(directory.first_scan, last + 1), events):
            scan = raw.decode_scan(n, event)
            assert scan.header.profile_size % 4 == 0
