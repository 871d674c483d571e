"""Simple melody text to MIDI and back, plus rendering to WAV with timidity."""

from __future__ import annotations

import io
import math
import subprocess
from pathlib import Path

import mido

__all__ = [
    "note_name",
    "octave",
    "process_one",
    "make_midi",
    "midi_to_text",
    "str_to_music",
]

TICKS_PER_QUARTER = 960
DEFAULT_TIMBRE = 40
_TEMPO_BPM = 72
_VELOCITY = 120

_NOTE_NAMES = ("C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B")
_NOTE_VALUES = {
    "C": 60, "Db": 61, "D": 62, "Eb": 63, "E": 64, "F": 65,
    "Gb": 66, "G": 67, "Ab": 68, "A": 69, "Bb": 70, "B": 71,
}

_NOTE_LETTERS = frozenset(b"ABCDEFG")
_DIGITS = frozenset(b"0123456789")
_REST = ord("R")
_FLAT = ord("b")
_SHARP = ord("#")
_LENGTH = ord("<")
_MINUS = ord("-")


def note_name(n: int) -> str:
    """The name of a note's pitch class, using flats for the black keys."""
    return _NOTE_NAMES[n % 12]


def octave(base: int, oct: int) -> int:
    """The MIDI key of pitch class ``base`` in octave ``oct``, kept to 0..127.

    Both arguments behave as unsigned bytes; octaves above 10 count as 10.
    """
    base &= 0xFF
    oct &= 0xFF
    if oct > 10:
        oct = 10
    if oct == 0:
        return base
    res = (base + 12 * oct) & 0xFF
    if res > 127:
        res -= 12
    return res


def _letter_base(c: int) -> int:
    return _NOTE_VALUES[chr(c)] % 12


def process_one(note: str) -> int:
    """The MIDI key of a single answer such as ``C#6``; unknown characters are ignored."""
    base = 0
    level = 0
    for c in note.replace(" ", "").encode("utf-8"):
        if c in _NOTE_LETTERS:
            base = _letter_base(c)
        elif c == _FLAT:
            base = (base - 1) & 0xFF
        elif c == _SHARP:
            base = (base + 1) & 0xFF
        elif c in _DIGITS:
            level = (level * 10 + c - ord("0")) & 0xFF
    if level == 0:
        level = 5
    return octave(base, level)


def _parse_length(text: bytes) -> int:
    try:
        return int(text.decode("ascii"))
    except ValueError:
        return 0


def _duration(length: int) -> int:
    """Ticks of a note lasting ``2**length`` quarter notes."""
    if length >= 0:
        factor = 1 << length if length < 32 else 0
        return (TICKS_PER_QUARTER * factor) & 0xFFFFFFFF
    shift = -length
    if shift >= 32:
        raise ValueError(f"note length out of range: {length}")
    return TICKS_PER_QUARTER // (1 << shift)


def _segments(text: str):
    """Yield ``(is_rest, base, level, length)`` for each note or rest in the text."""
    k = text.replace(" ", "").encode("utf-8")
    n = len(k)
    i = 0
    while i < n:
        base = 0
        level = 0
        rest = False
        length_text = bytearray()
        while True:
            c = k[i]
            if c == _REST:
                rest = True
                i += 1
            elif c in _NOTE_LETTERS:
                base = _letter_base(c)
                i += 1
            elif c == _FLAT:
                base = (base - 1) & 0xFF
                i += 1
            elif c == _SHARP:
                base = (base + 1) & 0xFF
                i += 1
            elif c in _DIGITS:
                level = (level * 10 + c - ord("0")) & 0xFF
                i += 1
            elif c == _LENGTH:
                i += 1
                while i < n and (k[i] == _MINUS or k[i] in _DIGITS):
                    length_text.append(k[i])
                    i += 1
            else:
                raise ValueError(f"无法解析第{i}个位置的{chr(c)}字符")
            if i >= n or k[i] in _NOTE_LETTERS or k[i] == _REST:
                break
        yield rest, base, level, _parse_length(bytes(length_text))


def make_midi(path, text: str, timbre: int = DEFAULT_TIMBRE) -> Path:
    """Write the melody in ``text`` to a MIDI file; an existing file is kept as it is.

    Notes are ``A``..``G`` with optional ``b``/``#``, an octave number
    (default 5) and ``<n`` for a length of ``2**n`` quarter notes; ``R`` is a rest.
    """
    path = Path(path)
    if path.exists():
        return path
    if not 0 <= timbre <= 127:
        raise ValueError("音色应该在0~127之间")

    track = mido.MidiTrack()
    track.append(mido.MetaMessage("time_signature", numerator=4, denominator=4, time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(_TEMPO_BPM), time=0))
    track.append(mido.MetaMessage("instrument_name", name="Violin", time=0))
    track.append(mido.Message("program_change", channel=0, program=timbre, time=0))

    delay = 0
    for rest, base, level, length in _segments(text):
        if rest:
            delay = _duration(length)
            continue
        if level == 0:
            level = 5
        key = octave(base, level) & 0x7F
        track.append(
            mido.Message("note_on", channel=0, note=key, velocity=_VELOCITY, time=delay)
        )
        track.append(
            mido.Message("note_off", channel=0, note=key, velocity=0, time=_duration(length))
        )
        delay = 0
    track.append(mido.MetaMessage("end_of_track", time=0))

    midi = mido.MidiFile(type=1, ticks_per_beat=TICKS_PER_QUARTER)
    midi.tracks.append(track)
    midi.save(str(path))
    return path


def _round_half_away(x: float) -> int:
    return int(math.floor(x + 0.5)) if x >= 0 else -int(math.floor(-x + 0.5))


def _power(length: float) -> int | None:
    """``round(log2(length))``, or None where the logarithm is undefined."""
    if not length > 0:
        return None
    return _round_half_away(math.log2(length))


def midi_to_text(data: bytes, track_no: int) -> str:
    """Describe one track of a MIDI file in the melody notation of :func:`make_midi`."""
    midi = mido.MidiFile(file=io.BytesIO(data))
    if not 0 <= track_no < len(midi.tracks):
        return ""
    parts: list[str] = []
    abs_ticks = 0
    start = 0.0
    end = 0.0
    start_note = 0
    for msg in midi.tracks[track_no]:
        abs_ticks += msg.time
        if msg.is_meta:
            continue
        sounding = msg.type == "note_on" and msg.velocity > 0
        if sounding:
            start = float(abs_ticks)
            start_note = msg.note
        if msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0):
            end = float(abs_ticks)
            if start_note == msg.note:
                parts.append(note_name(msg.note))
                level = msg.note // 12
                if level != 5:
                    parts.append(str(level))
                pow_ = _power((end - start) / TICKS_PER_QUARTER)
                if pow_ is not None and pow_ >= -4 and pow_ != 0:
                    parts.append(f"<{pow_}")
                start_note = 0
        if sounding and start > end:
            pow_ = _power((start - end) / TICKS_PER_QUARTER)
            if pow_ == 0:
                parts.append("R")
            elif pow_ is not None and pow_ >= -4:
                parts.append(f"R<{pow_}")
    return "".join(parts)


def str_to_music(text: str, midi_file, timbre: int = DEFAULT_TIMBRE) -> str:
    """Write the melody to ``midi_file`` and render it to a WAV file with timidity."""
    midi_file = str(midi_file)
    make_midi(midi_file, text, timbre)
    wav_file = midi_file.replace(".mid", ".wav")
    subprocess.run(["timidity", midi_file, "-Ow", "-o", wav_file], check=True)
    return wav_file