"""Decode one scan data packet: header, profile chunks and peak list.

Packet layout, starting at scan_data_addr + ScanIndexEntry.offset:

  PACKET_HEADER    40 bytes; profile and peak-list sizes are in 4-byte words
  profile          profile_size bytes (absent when 0)
  peak list        peak_list_size bytes (absent when 0)

Profile:
  first_value, step (Float64), chunk count, total bins (UInt32), then per
  chunk: first_bin, nbins (UInt32), fudge (Float32, only when the header
  layout is non-zero), nbins x Float32 signal.

Peak list:
  count (UInt32), then count x (position Float32, intensity Float32).
"""

from finnigan_raw.models.converter import IDENTITY
from finnigan_raw.models.scan_data import PacketHeader, Peak, Peaks, Profile, ProfileChunk, ScanData
from finnigan_raw.parser.byte_cursor import ByteCursor
from finnigan_raw.parser.errors import DecodeError, InconsistentRecordSize
from finnigan_raw.parser.field_reader import FLOAT32, Array, decode
from finnigan_raw.parser.schemas import (
    PACKET_HEADER,
    PEAK,
    PROFILE_CHUNK_FUDGE,
    PROFILE_CHUNK_HEAD,
    PROFILE_HEAD,
)

_WORD = 4


def decode_header(cursor: ByteCursor) -> PacketHeader:
    rec = decode(cursor, PACKET_HEADER)
    return PacketHeader(
        profile_size=rec["profile_words"] * _WORD,
        peak_list_size=rec["peak_list_words"] * _WORD,
        layout=rec["layout"],
        low_mz=rec["low_mz"],
        high_mz=rec["high_mz"],
        descriptor_list_size=rec["descriptor_list_size"],
        unknown_stream_size=rec["unknown_stream_size"],
        triplet_stream_size=rec["triplet_stream_size"],
        offset=rec.offset,
    )


def decode_profile(cursor: ByteCursor, layout: int) -> Profile:
    head = decode(cursor, PROFILE_HEAD)
    chunks: list[ProfileChunk] = []
    for i in range(head["peak_count"]):
        chunk_head = decode(cursor, PROFILE_CHUNK_HEAD)
        fudge = decode(cursor, PROFILE_CHUNK_FUDGE)["fudge"] if layout > 0 else 0.0
        signal = list(Array(FLOAT32, chunk_head["nbins"]).read(cursor))
        chunk = ProfileChunk(first_bin=chunk_head["first_bin"], fudge=fudge, signal=signal)
        if chunks and chunk.first_bin <= chunks[-1].last_bin:
            raise DecodeError(
                f"Profile chunk {i} at offset {chunk_head.offset} starts at bin "
                f"{chunk.first_bin}, overlapping previous chunk ending at bin {chunks[-1].last_bin}",
                chunk_head.offset,
            )
        chunks.append(chunk)
    return Profile(
        first_value=head["first_value"],
        step=head["step"],
        nbins=head["nbins"],
        chunks=chunks,
    )


def decode_peaks(cursor: ByteCursor) -> Peaks:
    count = cursor.uint32()
    peaks = []
    for _ in range(count):
        rec = decode(cursor, PEAK)
        peaks.append(Peak(rec["mz"], rec["abundance"]))
    return Peaks(peaks)


def _check_size(start: int, expected: int, actual: int, what: str) -> None:
    if actual != expected:
        raise InconsistentRecordSize(start, expected, actual, what)


def decode_packet(cursor: ByteCursor, converter=IDENTITY) -> ScanData:
    """Decode the packet at the cursor and attach *converter* to its profile."""
    header = decode_header(cursor)
    data_start = cursor.position

    profile = None
    if header.profile_size:
        profile = decode_profile(cursor, header.layout)
        _check_size(data_start, header.profile_size, cursor.position - data_start, "profile")
        profile.low_mz = header.low_mz
        profile.high_mz = header.high_mz
        profile.converter = converter

    peaks = None
    if header.peak_list_size:
        peaks_start = data_start + header.profile_size
        cursor.seek(peaks_start)
        peaks = decode_peaks(cursor)
        _check_size(peaks_start, header.peak_list_size, cursor.position - peaks_start, "peak list")

    return ScanData(header=header, profile=profile, peaks=peaks, converter=converter)
