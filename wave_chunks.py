"""
wave_chunks.py

RIFF/WAVE chunk walker and the fixed-layout decoders for the chunks wav-cue
cares about:

- 'fmt '  -> Header (sample rate and friends)
- 'cue '  -> list of CueEntry (markers)
- 'bext'  -> BroadcastAudioExtension (BWF origination data + time reference)

Everything else is skipped. The module never prints; callers build their
console output from the returned WaveFileInfo.
"""

import os
import struct
from collections import namedtuple
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np


# --------------------------
# Errors
# --------------------------
class WaveError(ValueError):
    """Base class for anything wrong with the content of a WAVE file."""


class NotWaveFileError(WaveError):
    """The RIFF or WAVE magic is missing."""


class WaveFormatError(WaveError):
    """The container or one of its chunks violates the layout."""


class ChunkFormatError(WaveFormatError):
    pass


class ChunkSizeError(ChunkFormatError):
    pass


class DuplicateChunkError(ChunkFormatError):
    pass


class TruncatedChunkError(WaveFormatError):
    pass


class MissingChunkError(WaveError):
    pass


# --------------------------
# Layout tables
# --------------------------
Field = namedtuple("Field", "name offset size kind")

RIFF_TAG = b"RIFF"
WAVE_TAG = b"WAVE"
CHUNK_HEADER_SIZE = 8

FMT_SIZE = 16
FMT_LAYOUT = (
    Field("compression_code", 0, 2, "u16"),
    Field("number_of_channels", 2, 2, "u16"),
    Field("sampling_rate", 4, 4, "u32"),
    Field("average_bytes_per_second", 8, 4, "u32"),
    Field("block_align", 12, 2, "u16"),
    Field("bits_per_sample", 14, 2, "u16"),
)

CUE_COUNT_SIZE = 4
CUE_POINT_SIZE = 24
# One cue point; offsets are explicit so the dtype doubles as the layout table.
CUE_POINT_DTYPE = np.dtype({
    "names": ["cue_id", "position", "data_chunk_id", "chunk_start", "block_start", "sample_start"],
    "formats": ["<u4", "<u4", "S4", "<u4", "<u4", "<u4"],
    "offsets": [0, 4, 8, 12, 16, 20],
    "itemsize": CUE_POINT_SIZE,
})

BEXT_SIZE = 348
BEXT_LAYOUT = (
    Field("description", 0, 256, "text"),
    Field("originator", 256, 32, "text"),
    Field("originator_reference", 288, 32, "text"),
    Field("origination_date", 320, 10, "fixed"),
    Field("origination_time", 330, 8, "fixed"),
    Field("time_reference_low", 338, 4, "u32"),
    Field("time_reference_high", 342, 4, "u32"),
    Field("version", 346, 2, "u16"),
)

_INT_FORMATS = {"u16": "<H", "u32": "<I"}


def _decode_field(spec, data):
    if spec.kind in _INT_FORMATS:
        return struct.unpack_from(_INT_FORMATS[spec.kind], data, spec.offset)[0]
    raw = data[spec.offset:spec.offset + spec.size]
    if spec.kind == "text":
        raw = raw.rstrip(b"\x00")
    return raw.decode("utf-8", errors="replace")


def _decode_layout(layout, data):
    return {spec.name: _decode_field(spec, data) for spec in layout}


# --------------------------
# Data model
# --------------------------
class ChunkKind(Enum):
    """Chunk tags with a decoder. Anything else maps to SKIP."""
    FMT = b"fmt "
    CUE = b"cue "
    BEXT = b"bext"
    SKIP = None

    @classmethod
    def _missing_(cls, value):
        return cls.SKIP


class CueChunkKind(Enum):
    DATA = b"data"
    SINT = b"sint"


@dataclass(frozen=True)
class Header:
    compression_code: int
    number_of_channels: int
    sampling_rate: int
    average_bytes_per_second: int
    block_align: int
    bits_per_sample: int


@dataclass(frozen=True)
class CueEntry:
    cue_id: int
    position: int
    data_chunk_id: CueChunkKind
    chunk_start: int
    block_start: int
    sample_start: int


@dataclass(frozen=True)
class BroadcastAudioExtension:
    description: str
    originator: str
    originator_reference: str
    origination_date: str
    origination_time: str
    time_reference: int
    version: int


@dataclass(frozen=True)
class ChunkInfo:
    tag: bytes
    offset: int
    size: int

    @property
    def kind(self):
        return ChunkKind(self.tag)

    @property
    def name(self):
        return self.tag.decode("ascii", errors="replace")


@dataclass
class WaveFileInfo:
    header: Header
    cues: List[CueEntry] = field(default_factory=list)
    bext: Optional[BroadcastAudioExtension] = None
    riff_size: int = 0
    chunks: List[ChunkInfo] = field(default_factory=list)
    bytes_walked: int = 0

    @property
    def bytes_left(self):
        """Declared RIFF payload not accounted for by the chunks walked."""
        return self.riff_size - len(WAVE_TAG) - self.bytes_walked


# --------------------------
# Decoders
# --------------------------
def decode_fmt(data):
    """Decode the 16-byte 'fmt ' prefix into a Header."""
    if len(data) < FMT_SIZE:
        raise ChunkSizeError(f"fmt chunk needs {FMT_SIZE} bytes, got {len(data)}")
    return Header(**_decode_layout(FMT_LAYOUT, data))


def decode_cue(data):
    """
    Decode a complete 'cue ' payload: u32 count followed by count 24-byte records.
    Returns the cue points as a list of CueEntry, in on-disk order.
    """
    if len(data) < CUE_COUNT_SIZE:
        raise ChunkSizeError(f"cue chunk needs at least {CUE_COUNT_SIZE} bytes, got {len(data)}")
    count = struct.unpack_from("<I", data, 0)[0]
    expected = CUE_COUNT_SIZE + CUE_POINT_SIZE * count
    if len(data) != expected:
        raise ChunkFormatError(
            f"cue chunk size {len(data)} does not match {count} cue point(s) ({expected} bytes)"
        )
    if count == 0:
        return []

    records = np.frombuffer(data, dtype=CUE_POINT_DTYPE, count=count, offset=CUE_COUNT_SIZE)
    cues = []
    for index, rec in enumerate(records):
        tag = bytes(rec["data_chunk_id"])
        try:
            kind = CueChunkKind(tag)
        except ValueError:
            raise ChunkFormatError(f"cue point {index} references unknown chunk type {tag!r}") from None
        cues.append(CueEntry(
            cue_id=int(rec["cue_id"]),
            position=int(rec["position"]),
            data_chunk_id=kind,
            chunk_start=int(rec["chunk_start"]),
            block_start=int(rec["block_start"]),
            sample_start=int(rec["sample_start"]),
        ))
    return cues


def decode_bext(data):
    """Decode the fixed 348-byte 'bext' prefix. Coding history is not kept."""
    if len(data) < BEXT_SIZE:
        raise ChunkSizeError(f"bext chunk needs {BEXT_SIZE} bytes, got {len(data)}")
    values = _decode_layout(BEXT_LAYOUT, data)
    low = values.pop("time_reference_low")
    high = values.pop("time_reference_high")
    return BroadcastAudioExtension(time_reference=low | (high << 32), **values)


# --------------------------
# Stream helpers
# --------------------------
def _read_exact(f, size, what):
    data = f.read(size)
    if len(data) < size:
        raise TruncatedChunkError(f"file ends inside {what} (wanted {size} bytes, got {len(data)})")
    return data


def _skip(f, count):
    """Advance the stream by count bytes without reading them."""
    if count:
        f.seek(count, os.SEEK_CUR)


def _read_envelope(f):
    magic = f.read(4)
    if magic != RIFF_TAG:
        raise NotWaveFileError("Not a wav file (no RIFF header)")
    riff_size = struct.unpack("<I", _read_exact(f, 4, "RIFF size"))[0]
    if f.read(4) != WAVE_TAG:
        raise NotWaveFileError("Not a wav file (RIFF form type is not WAVE)")
    return riff_size


def _read_chunk_header(f, pos):
    """Return (tag, size) or None once the stream has no further chunk tag."""
    tag = f.read(4)
    if len(tag) < 4:
        return None
    size = struct.unpack("<I", _read_exact(f, 4, f"size of chunk {tag!r} @ {pos}"))[0]
    if size == 0:
        raise ChunkFormatError(f"chunk {tag!r} @ {pos} declares a size of 0")
    return tag, size


def _read_fmt(f, chunk):
    if chunk.size < FMT_SIZE:
        raise ChunkSizeError(f"fmt chunk @ {chunk.offset} declares {chunk.size} bytes, needs {FMT_SIZE}")
    return decode_fmt(_read_exact(f, FMT_SIZE, f"fmt chunk @ {chunk.offset}")), FMT_SIZE


def _read_cue(f, chunk):
    if chunk.size < CUE_COUNT_SIZE:
        raise ChunkSizeError(f"cue chunk @ {chunk.offset} declares {chunk.size} bytes, needs {CUE_COUNT_SIZE}")
    head = _read_exact(f, CUE_COUNT_SIZE, f"cue chunk @ {chunk.offset}")
    count = struct.unpack("<I", head)[0]
    expected = CUE_COUNT_SIZE + CUE_POINT_SIZE * count
    if chunk.size != expected:
        raise ChunkFormatError(
            f"cue chunk @ {chunk.offset} declares {chunk.size} bytes for {count} cue point(s), expected {expected}"
        )
    body = _read_exact(f, expected - CUE_COUNT_SIZE, f"cue chunk @ {chunk.offset}")
    return decode_cue(head + body), expected


def _read_bext(f, chunk):
    if chunk.size < BEXT_SIZE:
        raise ChunkSizeError(f"bext chunk @ {chunk.offset} declares {chunk.size} bytes, needs {BEXT_SIZE}")
    return decode_bext(_read_exact(f, BEXT_SIZE, f"bext chunk @ {chunk.offset}")), BEXT_SIZE


_READERS = {
    ChunkKind.FMT: _read_fmt,
    ChunkKind.CUE: _read_cue,
    ChunkKind.BEXT: _read_bext,
}


def _check_chunk_end(chunk, end_of_file):
    end = chunk.offset + CHUNK_HEADER_SIZE + chunk.size
    if end > end_of_file:
        raise ChunkFormatError(
            f"chunk {chunk.tag!r} @ {chunk.offset} declares {chunk.size} bytes, "
            f"running {end - end_of_file} bytes past end of file"
        )


def _padded(size, align):
    return size + (size % 2 if align else 0)


# --------------------------
# Core walker
# --------------------------
def iter_chunks(f, align=True):
    """
    Validate the RIFF/WAVE envelope and yield ChunkInfo for each chunk, leaving
    the stream positioned at the start of the chunk payload. The caller may
    read from the payload; the next iteration seeks past it either way.
    """
    _read_envelope(f)
    pos = 12
    while True:
        f.seek(pos)
        hdr = _read_chunk_header(f, pos)
        if hdr is None:
            return
        tag, size = hdr
        yield ChunkInfo(tag, pos, size)
        pos += CHUNK_HEADER_SIZE + _padded(size, align)


def parse_wave(f, align=True):
    """
    Walk a RIFF/WAVE stream positioned at offset 0.

    Args:
        f: seekable binary stream
        align: skip the pad byte after odd-sized chunks (RIFF word alignment)

    Returns:
        WaveFileInfo with the header, every cue point and the last bext record
    """
    riff_size = _read_envelope(f)
    end_of_file = f.seek(0, os.SEEK_END)
    f.seek(12)
    header = None
    cues = []
    bext = None
    chunks = []
    walked = 0

    pos = 12
    while True:
        hdr = _read_chunk_header(f, pos)
        if hdr is None:
            break
        tag, size = hdr
        chunk = ChunkInfo(tag, pos, size)
        chunks.append(chunk)

        kind = chunk.kind
        if kind is ChunkKind.SKIP:
            _check_chunk_end(chunk, end_of_file)
            _skip(f, size)
        else:
            if kind is ChunkKind.FMT and header is not None:
                raise DuplicateChunkError(f"second fmt chunk @ {pos}")
            record, consumed = _READERS[kind](f, chunk)
            _check_chunk_end(chunk, end_of_file)
            _skip(f, size - consumed)
            if kind is ChunkKind.FMT:
                header = record
            elif kind is ChunkKind.CUE:
                cues.extend(record)
            else:
                bext = record

        padded = _padded(size, align)
        _skip(f, padded - size)
        walked += CHUNK_HEADER_SIZE + padded
        pos += CHUNK_HEADER_SIZE + padded

    if header is None:
        raise MissingChunkError("No fmt chunk found")

    return WaveFileInfo(
        header=header,
        cues=cues,
        bext=bext,
        riff_size=riff_size,
        chunks=chunks,
        bytes_walked=walked,
    )


def read_wave(filepath, align=True):
    """Open filepath and parse it; the file is closed on success and failure."""
    with open(filepath, "rb") as f:
        return parse_wave(f, align=align)
