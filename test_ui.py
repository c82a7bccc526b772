#!/usr/bin/env python3
"""
Tests for the terminal renderer.
"""

import sys
import os
import io
import asyncio
import unittest
from unittest.mock import patch

from rich.console import Console

# Add the project root to the path so we can import rsvp modules
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rsvp import ui, config, input_handler
from rsvp.engine import PlaybackEngine


class StubReader:

    def __init__(self, engine):
        self.engine = engine
        self.paste_mode_active = False
        self.paste_buffer = ''
        self.render_lock = asyncio.Lock()
        self.last_rendered_state = None


def render_to_text(renderable, width=80, height=24):
    console = Console(file=io.StringIO(), width=width, height=height, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class UITestCase(unittest.TestCase):

    def setUp(self):
        self.loop = asyncio.new_event_loop()
        self.addCleanup(self.loop.close)

    def make_engine(self, text="The quick brown fox jumps", **kwargs):
        engine = PlaybackEngine(text=text, title="Fox Story", source="fox.txt", loop=self.loop, **kwargs)
        self.addCleanup(engine.close)
        return engine


class TestChunkRendering(UITestCase):

    def test_focal_letter_is_centred(self):
        engine = self.make_engine(text="jumps")
        line = ui.render_chunk(engine, 41)
        self.assertEqual(line.plain, " " * 19 + "jumps")
        self.assertEqual(line.plain[20], "u")
        focal_spans = [span for span in line.spans if span.style == ui.COLORS.FOCAL_LETTER]
        self.assertEqual([(span.start, span.end) for span in focal_spans], [(20, 21)])

    def test_focal_column_is_stable_across_words(self):
        engine = self.make_engine(text="a extraordinarily fox")
        columns = []
        for _ in range(3):
            prefix, focal, _suffix = engine.focal_parts
            columns.append(ui.render_chunk(engine, 40).plain.index(prefix + focal) + len(prefix))
            engine.skip(1)
        self.assertEqual(columns, [20, 20, 20])

    def test_multi_word_chunk_is_centred_whole(self):
        engine = self.make_engine(chunk_size=2)
        line = ui.render_chunk(engine, 40)
        self.assertEqual(line.plain.strip(), "The quick")
        self.assertEqual(len(line.plain), 40)

    def test_empty_content_message(self):
        engine = self.make_engine(text="")
        self.assertIn("No content loaded", ui.render_chunk(engine, 40).plain)


class TestStatusAndProgress(UITestCase):

    def test_status_line(self):
        engine = self.make_engine(rate=400)
        engine.skip(2)
        engine.set_start_point()
        status = ui.render_status(engine).plain
        self.assertIn("Paused", status)
        self.assertIn("400 wpm", status)
        self.assertIn("Fast", status)
        self.assertIn("1×", status)
        self.assertIn(f"{ui.ICONS.START_MARKER} 3", status)
        self.assertIn("~1 min left", status)
        self.assertIn("68% faster", status)

    def test_playing_status(self):
        engine = self.make_engine()
        engine.play()
        self.assertIn("Playing", ui.render_status(engine).plain)

    def test_progress_bar_fill(self):
        engine = self.make_engine(text="a b c d")
        engine.skip(1)
        bar = ui.render_progress_bar(engine, 20).plain
        self.assertEqual(bar, " " * config.PROGRESS_BAR_MARGIN + ui.ICONS.PROGRESS_FILLED * 10 + ui.ICONS.PROGRESS_EMPTY * 10)

    def test_progress_bar_marks_start_point(self):
        engine = self.make_engine(text="a b c d")
        engine.skip(2)
        engine.set_start_point()
        bar = ui.render_progress_bar(engine, 20).plain
        self.assertEqual(bar[config.PROGRESS_BAR_MARGIN + 10], ui.ICONS.PROGRESS_START)

    def test_progress_geometry_and_hit_testing(self):
        self.assertEqual(ui.progress_bar_geometry(80, 24), (23, 7, 68))
        self.assertEqual(ui.progress_percent_at(7, 23, 80, 24), 0.0)
        self.assertEqual(ui.progress_percent_at(74, 23, 80, 24), 100.0)
        self.assertAlmostEqual(ui.progress_percent_at(40, 23, 80, 24), 33 / 67 * 100)
        self.assertIsNone(ui.progress_percent_at(6, 23, 80, 24))
        self.assertIsNone(ui.progress_percent_at(75, 23, 80, 24))
        self.assertIsNone(ui.progress_percent_at(40, 22, 80, 24))

    def test_key_hints_use_loaded_shortcuts(self):
        hints = ui.render_key_hints().plain
        self.assertIn("␣ play/pause", hints)
        self.assertIn("q quit", hints)

    def test_key_hints_skip_malformed_sections(self):
        shortcuts = {"playback": "space", "application": {"quit": "x"}}
        with patch.object(input_handler, 'KEYBOARD_SHORTCUTS', shortcuts):
            hints = ui.render_key_hints().plain
        self.assertEqual(hints, "x quit")

    def test_colours_are_plain_constants(self):
        self.assertEqual(ui.COLORS.FOCAL_LETTER, "bold red")
        self.assertFalse([name for name in vars(ui.UIColors) if name.startswith('apply_')])


class TestFullDisplay(UITestCase):

    def test_display_contents(self):
        engine = self.make_engine()
        engine.report_error("Failed to open PDF")
        reader = StubReader(engine)
        output = render_to_text(ui.build_display(reader, 80, 24))
        lines = output.rstrip("\n").split("\n")
        self.assertEqual(len(lines), 24)
        self.assertIn("Fox Story", lines[0])
        self.assertIn("fox.txt", lines[-1])
        self.assertIn("20%", lines[-1])
        self.assertIn("Failed to open PDF", output)
        self.assertIn("300 wpm", output)
        # Progress bar sits on the row hit-testing expects
        row, first_col, _ = ui.progress_bar_geometry(80, 24)
        self.assertEqual(lines[row - 1][first_col - 1], ui.ICONS.PROGRESS_FILLED)

    def test_paste_mode_display(self):
        engine = self.make_engine()
        reader = StubReader(engine)
        reader.paste_mode_active = True
        reader.paste_buffer = "first pasted line\nsecond line"
        output = render_to_text(ui.build_display(reader, 80, 24))
        self.assertIn("Ctrl-D", output)
        self.assertIn("second line", output)
        self.assertNotIn("wpm", output)

    def test_display_ui_skips_unchanged_frames(self):
        engine = self.make_engine()
        reader = StubReader(engine)
        stdout = io.StringIO()

        async def draw():
            await ui.display_ui(reader)

        with patch('rsvp.ui.get_terminal_size', return_value=(80, 24)), patch('sys.stdout', stdout):
            self.loop.run_until_complete(draw())
            first = stdout.getvalue()
            self.loop.run_until_complete(draw())
            self.assertEqual(stdout.getvalue(), first)
            engine.skip(1)
            self.loop.run_until_complete(draw())
            self.assertGreater(len(stdout.getvalue()), len(first))
        self.assertIn("Fox Story", first)

    def test_format_key_for_display(self):
        self.assertEqual(ui.format_key_for_display('left'), '←')
        self.assertEqual(ui.format_key_for_display('r'), 'r')


if __name__ == '__main__':
    unittest.main()
