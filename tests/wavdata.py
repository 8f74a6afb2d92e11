"""Byte builders for synthetic RIFF/WAVE fixtures."""

import struct


def chunk(tag, payload, size=None, pad=True):
    """Chunk header + payload; size overrides the declared size."""
    declared = len(payload) if size is None else size
    data = tag + struct.pack("<I", declared) + payload
    if pad and len(payload) % 2 == 1:
        data += b"\x00"
    return data


def fmt_chunk(sample_rate=44100, channels=2, bits=16, extra=b""):
    block_align = channels * bits // 8
    payload = struct.pack("<HHIIHH", 1, channels, sample_rate, sample_rate * block_align, block_align, bits)
    return chunk(b"fmt ", payload + extra)


def cue_payload(points):
    """points: iterable of (cue_id, sample_start) or full 6-tuples."""
    body = b""
    count = 0
    for p in points:
        if len(p) == 2:
            p = (p[0], 0, b"data", 0, 0, p[1])
        body += struct.pack("<II4sIII", *p)
        count += 1
    return struct.pack("<I", count) + body


def cue_chunk(points):
    return chunk(b"cue ", cue_payload(points))


def bext_payload(time_reference=0, description=b"", originator=b"", reference=b"",
                 date=b"2024-03-01", time=b"10-30-00", version=1, history=b""):
    low = time_reference & 0xFFFFFFFF
    high = time_reference >> 32
    return (
        description.ljust(256, b"\x00")
        + originator.ljust(32, b"\x00")
        + reference.ljust(32, b"\x00")
        + date
        + time
        + struct.pack("<IIH", low, high, version)
        + history
    )


def bext_chunk(**kwargs):
    return chunk(b"bext", bext_payload(**kwargs))


def data_chunk(frames=8):
    return chunk(b"data", b"\x00\x00" * frames)


def riff(*chunks, form=b"WAVE", magic=b"RIFF"):
    body = form + b"".join(chunks)
    return magic + struct.pack("<I", len(body)) + body
