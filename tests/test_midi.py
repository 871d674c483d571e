from unittest import mock

import mido
import pytest

from groupbot.midi import (
    make_midi,
    midi_to_text,
    note_name,
    octave,
    process_one,
    str_to_music,
)


def _notes(path):
    midi = mido.MidiFile(str(path))
    return [m.note for m in midi.tracks[0] if m.type == "note_on"]


def test_note_name_uses_flats():
    assert note_name(60) == "C"
    assert note_name(61) == "Db"
    assert note_name(70) == "Bb"
    assert note_name(72) == note_name(60)


def test_octave_of_middle_c():
    assert octave(0, 5) == 60
    assert octave(7, 0) == 7


@pytest.mark.parametrize("base", range(12))
@pytest.mark.parametrize("oct", [1, 5, 9, 10, 11, 30])
def test_octave_stays_in_midi_range(base, oct):
    assert 0 <= octave(base, oct) <= 127


def test_octave_clamps_above_ten():
    assert octave(4, 15) == octave(4, 10)


def test_process_one_matches_note_table():
    assert process_one("C") == 60
    assert process_one("A") == 69
    assert process_one("C 5") == process_one("C")


def test_process_one_enharmonics_and_octaves():
    assert process_one("C#6") == process_one("Db6")
    assert process_one("C6") == process_one("C") + 12
    assert process_one("Cb") == process_one("B4")


def test_make_midi_writes_notes(tmp_path):
    path = tmp_path / "song.mid"
    make_midi(path, "CDE", 40)
    assert _notes(path) == [process_one("C"), process_one("D"), process_one("E")]
    midi = mido.MidiFile(str(path))
    assert midi.ticks_per_beat == 960
    programs = [m.program for m in midi.tracks[0] if m.type == "program_change"]
    assert programs == [40]
    tempos = [m.tempo for m in midi.tracks[0] if m.type == "set_tempo"]
    assert tempos == [mido.bpm2tempo(72)]


def test_make_midi_keeps_existing_file(tmp_path):
    path = tmp_path / "song.mid"
    path.write_bytes(b"existing")
    make_midi(path, "CDE", 40)
    assert path.read_bytes() == b"existing"


def test_make_midi_rejects_unknown_character(tmp_path):
    with pytest.raises(ValueError, match="第1个位置的X字符"):
        make_midi(tmp_path / "bad.mid", "CX", 40)
    assert not (tmp_path / "bad.mid").exists()


def test_make_midi_rejects_bad_timbre(tmp_path):
    with pytest.raises(ValueError):
        make_midi(tmp_path / "t.mid", "C", 128)


@pytest.mark.parametrize("melody", ["CDE", "CRE", "RC", "C<1D<-1", "C6E4", "DbGbBb3"])
def test_round_trip(tmp_path, melody):
    path = tmp_path / "round.mid"
    make_midi(path, melody, 0)
    assert midi_to_text(path.read_bytes(), 0) == melody


def test_round_trip_canonicalises_sharps(tmp_path):
    path = tmp_path / "sharp.mid"
    make_midi(path, "C# F#", 0)
    assert midi_to_text(path.read_bytes(), 0) == "DbGb"


def test_midi_to_text_missing_track(tmp_path):
    path = tmp_path / "one.mid"
    make_midi(path, "C", 0)
    assert midi_to_text(path.read_bytes(), 3) == ""


def test_str_to_music_runs_timidity(tmp_path):
    midi_file = str(tmp_path / "tune.mid")
    with mock.patch("groupbot.midi.subprocess.run") as run:
        wav = str_to_music("CDE", midi_file, 40)
    assert wav == str(tmp_path / "tune.wav")
    run.assert_called_once_with(["timidity", midi_file, "-Ow", "-o", wav], check=True)
    assert _notes(midi_file) == [process_one("C"), process_one("D"), process_one("E")]