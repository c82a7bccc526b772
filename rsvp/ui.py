"""Terminal rendering of the reading panel with rich."""

import os
import sys
from rich.console import Console, Group
from rich.text import Text
from rich.panel import Panel
from . import input_handler, config

# ================================
# CENTRALIZED UI CONFIGURATION
# ================================
class UIIcons:
    """Central place to configure all UI icons and separators."""

    # Status icons
    PLAYING = "▶"
    PAUSED = "⏸"

    # Focal guide marks above and below the focal letter
    FOCAL_GUIDE_TOP = "▾"
    FOCAL_GUIDE_BOTTOM = "▴"

    # Resume point marker
    START_MARKER = "⚑"

    # Separators
    SEPARATOR = "⸱"

    # Progress bar
    PROGRESS_FILLED = "▓"
    PROGRESS_EMPTY = "░"
    PROGRESS_START = "┃"

class UIColors:
    """Central place to configure all UI colors and styles."""

    # Status colors
    PLAYING_STATUS = "green"
    PAUSED_STATUS = "yellow"

    # Reading area
    TEXT_NORMAL = "white"
    FOCAL_LETTER = "bold red"
    FOCAL_GUIDE = "bright_black"
    CHUNK_TEXT = "bold white"

    # Panel and UI structure
    PANEL_BORDER = "bright_blue"
    PANEL_TITLE = "bold blue"
    PANEL_SUBTITLE = "bright_black"
    SEPARATORS = "bright_blue"
    CONTROL_KEYS = "white"
    HINT_TEXT = "bright_black"

    # Status line
    RATE = "bold cyan"
    START_MARKER = "magenta"
    TIME_SAVED = "green"
    ERROR = "bold red"

    # Progress bar
    PROGRESS_BAR = "bold blue"

# Create global instances for easy access
ICONS = UIIcons()
COLORS = UIColors()

# Panel border plus one column of padding on each side
PANEL_CHROME = 4

def get_terminal_size():
    """Get terminal size."""
    try:
        columns, rows = os.get_terminal_size()
        return max(columns, 40), max(rows, 10)
    except OSError:
        return 80, 24

def content_width(width):
    return max(1, width - PANEL_CHROME)

def progress_bar_geometry(width, height):
    """
    Locate the progress bar on screen.

    Returns:
        tuple: (row, first column, bar width), using the 1-based
        coordinates of terminal mouse reports.
    """
    margin = config.PROGRESS_BAR_MARGIN
    bar_width = max(1, content_width(width) - 2 * margin)
    # Last row inside the panel's bottom border, after border and padding columns
    return height - 1, 3 + margin, bar_width

def progress_percent_at(x_pos, y_pos, width, height):
    """Map a click position to a percentage, or None if it missed the progress bar."""
    row, first_col, bar_width = progress_bar_geometry(width, height)
    if y_pos != row or not first_col <= x_pos < first_col + bar_width:
        return None
    if bar_width == 1:
        return 0.0
    return (x_pos - first_col) / (bar_width - 1) * 100

def render_chunk(engine, width):
    """Render the current chunk with the focal letter pinned to the centre column."""
    line = Text(no_wrap=True, overflow="crop")
    if not engine.has_content:
        line.append("No content loaded", style=COLORS.HINT_TEXT)
        line.align("center", width)
        return line

    prefix, focal, suffix = engine.focal_parts
    if not focal:
        line.append(prefix, style=COLORS.CHUNK_TEXT)
        line.align("center", width)
        return line

    center = width // 2
    if len(prefix) > center:
        prefix = prefix[len(prefix) - center:]
    line.append(" " * (center - len(prefix)))
    line.append(prefix, style=COLORS.TEXT_NORMAL)
    line.append(focal, style=COLORS.FOCAL_LETTER)
    line.append(suffix, style=COLORS.TEXT_NORMAL)
    return line

def render_focal_guide(icon, width):
    guide = Text(no_wrap=True)
    guide.append(" " * (width // 2))
    guide.append(icon, style=COLORS.FOCAL_GUIDE)
    return guide

def render_status(engine):
    status = Text(no_wrap=True, overflow="ellipsis")
    if engine.is_playing:
        status.append(f"{ICONS.PLAYING} Playing", style=COLORS.PLAYING_STATUS)
    else:
        status.append(f"{ICONS.PAUSED} Paused", style=COLORS.PAUSED_STATUS)

    label, label_style = engine.speed_label
    separator = f" {ICONS.SEPARATOR} "
    status.append(separator, style=COLORS.SEPARATORS)
    status.append(f"{engine.rate} wpm ", style=COLORS.RATE)
    status.append(label, style=label_style)
    status.append(separator, style=COLORS.SEPARATORS)
    status.append(f"{engine.chunk_size}×", style=COLORS.CONTROL_KEYS)
    status.append(separator, style=COLORS.SEPARATORS)
    status.append(f"{ICONS.START_MARKER} {engine.start_index + 1}", style=COLORS.START_MARKER)
    status.append(separator, style=COLORS.SEPARATORS)
    status.append(f"~{engine.estimated_minutes_remaining} min left", style=COLORS.CONTROL_KEYS)
    if engine.time_saved_percent:
        status.append(separator, style=COLORS.SEPARATORS)
        status.append(f"{engine.time_saved_percent}% faster", style=COLORS.TIME_SAVED)
    status.justify = "center"
    return status

def render_progress_bar(engine, bar_width):
    filled = int((engine.progress_percent / 100) * bar_width)
    bar = list(ICONS.PROGRESS_FILLED * filled + ICONS.PROGRESS_EMPTY * (bar_width - filled))
    if engine.has_content and engine.start_index and bar_width > 1:
        start_pos = min(bar_width - 1, int(engine.start_index / engine.word_count * bar_width))
        bar[start_pos] = ICONS.PROGRESS_START
    progress = Text(" " * config.PROGRESS_BAR_MARGIN, no_wrap=True)
    progress.append(''.join(bar), style=COLORS.PROGRESS_BAR)
    return progress

def _binding(section, action):
    bindings = input_handler.KEYBOARD_SHORTCUTS.get(section)
    if not isinstance(bindings, dict):
        return None
    return bindings.get(action)

def render_key_hints():
    hints = [
        (_binding("playback", "toggle"), "play/pause"),
        (_binding("navigation", "skip_back"), "back"),
        (_binding("navigation", "skip_forward"), "forward"),
        (_binding("speed", "increase_speed"), "faster"),
        (_binding("speed", "decrease_speed"), "slower"),
        (_binding("playback", "restart"), "restart"),
        (_binding("playback", "set_start"), "set start"),
        (_binding("content", "paste"), "paste"),
        (_binding("application", "quit"), "quit"),
    ]
    text = Text(no_wrap=True, overflow="ellipsis", justify="center")
    for i, (key, label) in enumerate(hint for hint in hints if hint[0]):
        if i:
            text.append(f" {ICONS.SEPARATOR} ", style=COLORS.SEPARATORS)
        text.append(format_key_for_display(key), style=COLORS.CONTROL_KEYS)
        text.append(f" {label}", style=COLORS.HINT_TEXT)
    return text

def render_paste_area(reader, width, rows):
    lines = reader.paste_buffer.split('\n')[-max(1, rows - 1):]
    area = Text(no_wrap=True, overflow="crop")
    area.append("Paste text, then Ctrl-D to load or Esc to cancel\n", style=COLORS.HINT_TEXT)
    area.append('\n'.join(line[-width:] for line in lines), style=COLORS.TEXT_NORMAL)
    area.append("▏", style=COLORS.FOCAL_LETTER)
    return area

def build_display(reader, width, height):
    """Build the full-screen renderable for the current reader state."""
    engine = reader.engine
    inner_width = content_width(width)
    inner_height = max(1, height - 2)

    if reader.paste_mode_active:
        body = [render_paste_area(reader, inner_width, inner_height - 1)]
        body_rows = body[0].plain.count('\n') + 1
    else:
        body = [
            render_focal_guide(ICONS.FOCAL_GUIDE_TOP, inner_width),
            render_chunk(engine, inner_width),
            render_focal_guide(ICONS.FOCAL_GUIDE_BOTTOM, inner_width),
            Text(""),
            render_status(engine),
        ]
        if engine.error:
            body.append(Text(engine.error, style=COLORS.ERROR, justify="center", no_wrap=True, overflow="ellipsis"))
        body.append(render_key_hints())
        body_rows = len(body)

    # Vertically centre the body and pin the progress bar to the last row
    free_rows = max(0, inner_height - body_rows - 1)
    top_rows = free_rows // 2
    lines = [Text("")] * top_rows + body + [Text("")] * (free_rows - top_rows)
    lines.append(render_progress_bar(engine, progress_bar_geometry(width, height)[2]))

    title = Text(engine.title, style=COLORS.PANEL_TITLE)
    subtitle = Text(f"{engine.source} {ICONS.SEPARATOR} {int(engine.progress_percent)}%", style=COLORS.PANEL_SUBTITLE)
    return Panel(
        Group(*lines),
        title=title,
        subtitle=subtitle,
        border_style=COLORS.PANEL_BORDER,
        width=width,
        height=height,
    )

def get_render_state(reader, width, height):
    engine = reader.engine
    return (
        engine.title, engine.source, engine.current_index, engine.start_index,
        engine.chunk_size, engine.rate, engine.is_playing, engine.error,
        engine.word_count, reader.paste_mode_active, reader.paste_buffer,
        width, height,
    )

async def display_ui(reader):
    """Display the UI."""
    if reader.render_lock.locked():
        return

    async with reader.render_lock:
        width, height = get_terminal_size()
        current_state = get_render_state(reader, width, height)
        if reader.last_rendered_state == current_state:
            return
        reader.last_rendered_state = current_state

        temp_console = Console(width=width, height=height, force_terminal=True)
        with temp_console.capture() as capture:
            temp_console.print(build_display(reader, width, height), end='')

        sys.stdout.write('\033[?25l\033[H' + capture.get())
        sys.stdout.flush()

def format_key_for_display(key):
    """Format a key name for display in the UI."""
    key_display_map = {
        'space': '␣',
        'left': '←',
        'right': '→',
        'up': '↑',
        'down': '↓',
        'home': '⇱',
        'end': '⇲',
        'enter': '⏎',
        'tab': '⇥',
    }
    return key_display_map.get(key, key)
