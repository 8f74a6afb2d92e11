"""
cue_report.py

Turn decoded cue points into marker timestamps.

Each marker line looks like "12.345,Mark 7" and, when the file carries a bext
chunk, gets the wall-clock time of day appended: "12.345,Mark 7 10:31:04".
"""

import pandas as pd

from wave_chunks import WaveFormatError

TABLE_COLUMNS = ["cue_id", "position", "data_chunk_id", "sample_start", "seconds", "time_of_day"]


def relative_seconds(cue, sampling_rate):
    return cue.sample_start / float(sampling_rate)


def time_of_day(cue, sampling_rate, time_reference):
    """
    Wall-clock time of the cue, given the bext time reference (samples since
    midnight). Hours are not wrapped at 24.
    """
    total = (time_reference + cue.sample_start) / float(sampling_rate)
    hours = int(total // 3600)
    minutes = int(total // 60) % 60
    seconds = int(total) % 60
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def marker_line(cue, header, bext=None):
    line = f"{relative_seconds(cue, header.sampling_rate):.3f},Mark {cue.cue_id}"
    if bext is not None:
        line += " " + time_of_day(cue, header.sampling_rate, bext.time_reference)
    return line


def _check_rate(info):
    if not info.header.sampling_rate:
        raise WaveFormatError("fmt chunk declares a sample rate of 0, cannot place markers")


def marker_lines(info):
    """One marker line per cue point, in file order."""
    if not info.cues:
        return []
    _check_rate(info)
    return [marker_line(cue, info.header, info.bext) for cue in info.cues]


def markers_frame(info):
    """
    Marker table for CSV export.
    Columns: cue_id, position, data_chunk_id, sample_start, seconds, time_of_day
    (time_of_day is empty when there is no bext chunk).
    """
    if not info.cues:
        return pd.DataFrame(columns=TABLE_COLUMNS)
    _check_rate(info)

    rate = info.header.sampling_rate
    rows = []
    for cue in info.cues:
        rows.append({
            "cue_id": cue.cue_id,
            "position": cue.position,
            "data_chunk_id": cue.data_chunk_id.value.decode("ascii"),
            "sample_start": cue.sample_start,
            "seconds": round(relative_seconds(cue, rate), 3),
            "time_of_day": time_of_day(cue, rate, info.bext.time_reference) if info.bext else "",
        })
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)
