#!/usr/bin/env python3
"""
wav_cue.py

Export the cue markers of a WAV file as timestamps.

Reads the 'fmt ', 'cue ' and (optional) 'bext' chunks and prints one line per
marker: seconds from start of file, the marker id, and the time of day when the
file carries a BWF time reference. Marker lines go to stdout, everything else
([INFO]/[SKIP]/[WARN]/[ERR] diagnostics) goes to stderr, so redirect stdout to
get a clean CSV. With --chunks the chunk layout itself is the result and goes
to stdout.

Examples:
  python wav_cue.py "D:\\Recordings\\Take01.wav" > Take01.csv
  python wav_cue.py "D:\\Recordings\\Take01.wav" -o Take01.csv -q
  python wav_cue.py "D:\\Recordings\\Take01.wav" --table Take01_markers.csv -v
  python wav_cue.py "D:\\Recordings\\Take01.wav" --chunks
"""

import argparse
import sys

from cue_report import marker_lines, markers_frame
from wave_chunks import ChunkKind, WaveError, iter_chunks, read_wave


def diag(msg):
    print(msg, file=sys.stderr)


# --------------------------
# Diagnostics
# --------------------------
def report_file_info(info, verbose=False):
    """Print the container/header summary that accompanies the marker lines."""
    h = info.header
    diag(f"[INFO] RIFF container size: {info.riff_size} bytes")
    diag(
        f"[INFO] fmt: format_tag={h.compression_code}, channels={h.number_of_channels}, "
        f"sample_rate={h.sampling_rate}, byte_rate={h.average_bytes_per_second}, "
        f"block_align={h.block_align}, bits_per_sample={h.bits_per_sample}"
    )
    for chunk in info.chunks:
        if chunk.kind is ChunkKind.SKIP:
            diag(f"[SKIP] Chunk {chunk.name} @ {chunk.offset}, size={chunk.size}")

    bext_count = sum(1 for c in info.chunks if c.kind is ChunkKind.BEXT)
    if bext_count > 1:
        diag(f"[WARN] {bext_count} bext chunks found, using the last one")

    if verbose:
        for cue in info.cues:
            diag(
                f"[CUE] id={cue.cue_id} position={cue.position} chunk={cue.data_chunk_id.value.decode()} "
                f"chunk_start={cue.chunk_start} block_start={cue.block_start} sample_start={cue.sample_start}"
            )
        if info.bext:
            b = info.bext
            diag(f"[INFO] bext: description={b.description!r} originator={b.originator!r} "
                 f"reference={b.originator_reference!r}")
            diag(f"[INFO] bext: origination={b.origination_date} {b.origination_time} "
                 f"time_reference={b.time_reference} version={b.version}")

    diag(f"[INFO] {len(info.cues)} cue point(s), bext: {'yes' if info.bext else 'no'}")
    diag(f"[INFO] bytes left: {info.bytes_left}")


def list_chunks(filepath, align=True):
    """The chunk layout is this mode's result, so it goes to stdout."""
    with open(filepath, "rb") as f:
        chunks = list(iter_chunks(f, align=align))
    for chunk in chunks:
        print(f"Chunk {chunk.name:4s} @ {chunk.offset}, size={chunk.size}")


# --------------------------
# Per-file processing
# --------------------------
def process(filepath, output=None, table=None, align=True, quiet=False, verbose=False):
    """
    Parse one WAV file and write its marker lines.
    Raises WaveError / OSError; nothing is written to the results channel
    unless the whole file was decoded.
    """
    info = read_wave(filepath, align=align)
    lines = marker_lines(info)
    frame = markers_frame(info) if table else None

    # files first, stdout and the report only once every write went through
    if frame is not None:
        frame.to_csv(table, index=False)
    if output:
        with open(output, "w", newline="", encoding="utf-8") as out:
            for line in lines:
                out.write(line + "\n")
    else:
        for line in lines:
            print(line)

    if not quiet:
        report_file_info(info, verbose=verbose)
        if output:
            diag(f"[INFO] Wrote {len(lines)} marker(s) to {output}")
        if frame is not None:
            diag(f"[INFO] Wrote marker table for {len(frame)} cue point(s) to {table}")


# --------------------------
# Main
# --------------------------
def build_parser():
    parser = argparse.ArgumentParser(
        prog="wav-cue",
        usage="%(prog)s [options] filename.wav > filename.csv",
        description="Export WAV cue markers (with BWF time of day) as CSV lines.",
    )
    parser.add_argument("file", nargs="?", help="WAV file path")
    parser.add_argument("-o", "--output", help="Write marker lines to this file instead of stdout.")
    parser.add_argument("--table", help="Also write the full marker table (with header) to this CSV.")
    parser.add_argument("--chunks", action="store_true", help="Only list the chunk layout (tag, offset, size).")
    parser.add_argument("--no-align", dest="align", action="store_false",
                        help="Do not skip the pad byte after odd-sized chunks.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only report errors on stderr.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Dump every cue point and the bext record.")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.file:
        parser.print_usage(sys.stderr)
        return 2

    try:
        if args.chunks:
            list_chunks(args.file, align=args.align)
        else:
            process(
                args.file,
                output=args.output,
                table=args.table,
                align=args.align,
                quiet=args.quiet,
                verbose=args.verbose,
            )
    except (WaveError, OSError) as e:
        diag(f'[ERR] Failed to process "{args.file}": {e}')
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
