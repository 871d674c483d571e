# groupbot

Building blocks for a group chat bot. You import the modules you need and
connect them to your own bot framework. The package has no command-line
entry point.

## Install

```
pip install .
pip install ".[test]"   # adds pytest and responses for the test suite
```

`groupbot.midi.str_to_music` renders WAV files by running the external
`timidity` program, which must be on your `PATH`.

## What is inside

- `groupbot.timer`: `Timer` is a reminder for one group. Its month, day,
  weekday, hour, minute and enabled flag are packed into one integer
  field, `emdwhm`. A value of -1 means "every". `timer_info()` gives a
  canonical description, and `timer_id()` derives an id from it.
  `get_filled_timer` builds a timer from the groups of a Chinese date
  phrase. An invalid field leaves the timer disabled and puts the reason
  in `alert`. `get_filled_cron_timer` builds a timer driven by a cron
  expression. `chinese_num_to_int` and `chinese_char_to_int` read small
  Chinese numerals.
- `groupbot.schedule`: `next_wake_time(timer, now)` gives the next moment
  a date-based timer should check itself. `should_fire(timer, now)` tells
  whether it is due. `first_week(date, week)` finds the first given weekday
  of a month, counting Sunday as 0.
- `groupbot.clock`: `Clock(db_path, sender)` keeps timers in SQLite and in
  memory. Cron timers run on a background thread. Date-based timers are
  watched by `register_timer` in the calling thread until they are
  cancelled. When a timer is due, the clock calls
  `sender(self_id, grp_id, message)`. `message` is a list of
  `{"type": ..., "data": {...}}` segments: an @all mention, the alert
  text, and the image URL if one is set. The clock also provides
  `cancel_timer`, `list_timers`, `get_timer`, `add_timer_into_db`,
  `add_timer_into_map` and `close`. It can be used as a context manager.
- `groupbot.holiday`: `Holiday` with `describe(now)` reports a countdown to
  a holiday. `parse_holiday` and `format_holiday` read and write the
  `dur_year_month_day` text form. `weekend(today)` reports the days left
  until the weekend. `moyu_message(today, holidays)` builds the full daily
  reminder text.
- `groupbot.nsfw`: `judge` and `auto_judge` turn a `Picture` of classifier
  probabilities into a short verdict. `auto_judge` returns `None` when
  there is nothing to say.
- `groupbot.hyaku`: `load_poems(path)` reads the Hundred Poets CSV into
  `Poem` objects. The CSV needs a title row followed by poems 1 to 100 in
  order. `image_urls(number)` gives the relative paths of a poem's two
  pictures.
- `groupbot.midi`: `make_midi(path, text, timbre)` writes a MIDI file from
  note text such as `CCGGAAGR` or `C#6<-1`. `midi_to_text(data, track_no)`
  turns a track back into that notation. `process_one`, `note_name` and
  `octave` handle single notes. `str_to_music` writes the MIDI file and
  renders it to WAV with `timidity`.
- `groupbot.manager`: `ManagerStore(db_path)` keeps per-group welcome and
  farewell templates in SQLite. `check_new_user` checks a join request
  against a gist that holds a recent unix timestamp, and records members
  who pass. `parse_gist_answer` and `gist_url` help with those checks.
- `groupbot.admin`: helpers for moderation commands. `mute_minutes` and
  `self_mute_minutes` compute mute durations. `welcome_to_cq` fills a
  welcome template. `unescape_forward` undoes bracket escaping.
  `set_verify_flag` and `set_gist_flag` switch option flags.
  `pick_member` picks one of the ten most recent speakers.
  `farewell_text` gives the default farewell.
- `groupbot.webtools`: `guess_abbreviation` expands pinyin abbreviations
  using an online service. `juejuezi(verb, noun)` asks an online generator
  for a "绝绝子" phrase.
- `groupbot.jandan`: `PictureStore(path)` stores picture URLs in SQLite,
  each keyed by its `crc64_iso` checksum, and can pick one at random.
- `groupbot.omikuji`: `KujiStore(path)` reads fortune slip explanations
  from SQLite. `omikuji_image_urls(number)` gives the relative paths of a
  slip's two pictures.

## Example

```python
from groupbot.timer import get_filled_timer

t = get_filled_timer(["", "12", "-1", "12", "0", "", "test"], 0, 0, False)
print(t.timer_info())
```

## What it does not do

- It does not connect to any chat service and has no command dispatcher.
  Matching messages and sending replies are up to your bot framework.
- It does not download the poem CSV, the fortune slip database or any
  pictures. You provide these files yourself.
- It has no GitHub repository search.

## Tests

```
pytest
```