"""Playback engine: state, progress model, clock and control surface."""

import asyncio
import logging
import math

from . import config
from .tokenizer import tokenize, focal_split


def _clamp(value, low, high):
    return max(low, min(value, high))


class PlaybackEngine:
    """
    Owns the playback state of one reading session.

    All mutation goes through the command methods (play, pause, skip, ...);
    the state itself is only readable through properties. While playing,
    exactly one timer handle is armed on the event loop. It is cancelled and
    recreated whenever the playing flag, the rate or the chunk size changes.
    """

    def __init__(self, text=config.SAMPLE_TEXT, title=config.SAMPLE_TITLE,
                 source=config.SAMPLE_SOURCE, rate=config.DEFAULT_RATE,
                 chunk_size=config.DEFAULT_CHUNK_SIZE, loop=None):
        self._loop = loop
        self._timer = None
        self._closed = False

        self._title = title
        self._source = source
        self._tokens = tokenize(text)
        self._current_index = 0
        self._start_index = 0
        self._error = ""
        self._chunk_size = self._normalize_chunk_size(chunk_size)
        self._rate = _clamp(int(rate), config.MIN_RATE, config.MAX_RATE)
        self._is_playing = False

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def title(self):
        return self._title

    @property
    def source(self):
        return self._source

    @property
    def tokens(self):
        return tuple(self._tokens)

    @property
    def word_count(self):
        return len(self._tokens)

    @property
    def has_content(self):
        return bool(self._tokens)

    @property
    def current_index(self):
        return self._current_index

    @property
    def start_index(self):
        return self._start_index

    @property
    def chunk_size(self):
        return self._chunk_size

    @property
    def rate(self):
        return self._rate

    @property
    def is_playing(self):
        return self._is_playing

    @property
    def error(self):
        return self._error

    @property
    def last_index(self):
        return max(0, len(self._tokens) - 1)

    @property
    def is_at_end(self):
        return self._current_index >= self.last_index

    @property
    def tick_interval(self):
        """Seconds between clock ticks at the current rate and chunk size."""
        return (60 / self._rate) * self._chunk_size

    # ------------------------------------------------------------------
    # Derived progress values
    # ------------------------------------------------------------------

    @property
    def current_chunk(self):
        end = self._current_index + self._chunk_size
        return " ".join(self._tokens[self._current_index:end])

    @property
    def focal_parts(self):
        """
        Current chunk split for display.

        With a chunk size of 1 the word is split around its focal point;
        larger chunks are returned whole as the prefix.
        """
        chunk = self.current_chunk
        if self._chunk_size != 1:
            return chunk, "", ""
        return focal_split(chunk)

    @property
    def progress_percent(self):
        if not self._tokens:
            return 0.0
        return ((self._current_index + 1) / len(self._tokens)) * 100

    @property
    def estimated_minutes_remaining(self):
        if not self._tokens:
            return 0
        return math.ceil((len(self._tokens) - self._current_index) / self._rate)

    @property
    def speed_label(self):
        """Return (label, style) describing the current rate."""
        if self._rate < 200:
            return "Slow", "blue"
        if self._rate <= 300:
            return "Normal", "green"
        if self._rate <= 400:
            return "Fast", "yellow"
        if self._rate < config.MAX_RATE:
            return "Turbo", "dark_orange"
        return "MAX", "bold red blink"

    @property
    def time_saved_percent(self):
        average = config.AVERAGE_READING_RATE
        if self._rate <= average:
            return 0
        return round(((self._rate - average) / average) * 100)

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def load_content(self, title, source, raw_text):
        """Replace the token sequence, resetting position but keeping rate and chunk size."""
        self._title = title
        self._source = source
        self._tokens = tokenize(raw_text)
        self._current_index = 0
        self._start_index = 0
        self._error = ""
        logging.info(f"Loaded '{title}' ({len(self._tokens)} words)")
        if not self._tokens:
            self._set_playing(False)

    def report_error(self, message):
        self._error = str(message)
        logging.error(f"Content error: {message}")

    def play(self):
        if not self._tokens or self._closed:
            return
        if self.is_at_end:
            self._current_index = self._start_index
        self._set_playing(True)

    def pause(self):
        self._set_playing(False)

    def toggle(self):
        if self._is_playing:
            self.pause()
        else:
            self.play()

    def restart(self):
        self._current_index = self._start_index
        self._set_playing(False)

    def skip(self, n):
        self._current_index = _clamp(self._current_index + int(n), 0, self.last_index)

    def adjust_rate(self, delta):
        rate = _clamp(self._rate + int(delta), config.MIN_RATE, config.MAX_RATE)
        if rate != self._rate:
            self._rate = rate
            self._rearm()

    def set_chunk_size(self, n):
        chunk_size = self._normalize_chunk_size(n)
        if chunk_size != self._chunk_size:
            self._chunk_size = chunk_size
            self._rearm()

    def set_start_point(self):
        self._start_index = self._current_index

    def seek_to(self, pct):
        if not self._tokens:
            return
        pct = _clamp(float(pct), 0.0, 100.0)
        target = math.floor((pct / 100) * len(self._tokens))
        self._current_index = _clamp(target, 0, self.last_index)

    def close(self):
        """Tear down the engine; the clock is cancelled and play becomes a no-op."""
        self._closed = True
        self._set_playing(False)

    # ------------------------------------------------------------------
    # Playback clock
    # ------------------------------------------------------------------

    def _normalize_chunk_size(self, n):
        return _clamp(int(n), min(config.CHUNK_SIZES), max(config.CHUNK_SIZES))

    def _set_playing(self, playing):
        if playing != self._is_playing:
            self._is_playing = playing
            self._rearm()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _rearm(self):
        """Cancel the live timer and, when playing, arm a fresh one from current state."""
        self._cancel_timer()
        if not self._is_playing:
            return
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                # Without a loop the clock cannot tick, so stay paused
                logging.error("Playback requested without a running event loop")
                self._is_playing = False
                return
        self._timer = self._loop.call_later(self.tick_interval, self._on_timer)

    def _on_timer(self):
        self._timer = None
        self._tick()
        if self._is_playing:
            self._rearm()

    def _tick(self):
        """Advance by one chunk, or stop at the end of the content."""
        if self._current_index >= len(self._tokens) - self._chunk_size:
            self._set_playing(False)
            return
        self._current_index += self._chunk_size
