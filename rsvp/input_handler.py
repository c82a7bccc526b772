"""Translate terminal key and mouse input into reader commands."""

import os
import sys
import json
import logging

from . import ui

# Default keyboard shortcuts
DEFAULT_KEYBOARD_SHORTCUTS = {
    "playback": {
        "toggle": "space",
        "restart": "r",
        "set_start": "s"
    },
    "navigation": {
        "skip_back": "left",
        "skip_forward": "right"
    },
    "speed": {
        "increase_speed": "up",
        "decrease_speed": "down"
    },
    "chunk": {
        "chunk_1": "1",
        "chunk_2": "2",
        "chunk_3": "3"
    },
    "content": {
        "paste": "p"
    },
    "application": {
        "quit": "q"
    }
}

# Global variable to store loaded keyboard shortcuts
KEYBOARD_SHORTCUTS = DEFAULT_KEYBOARD_SHORTCUTS

# Characters and escape sequence finals mapped to key names
NAMED_KEYS = {
    ' ': 'space',
    '\t': 'tab',
    '\r': 'enter',
    '\n': 'enter',
}
ARROW_KEYS = {
    'A': 'up',
    'B': 'down',
    'C': 'right',
    'D': 'left',
    'H': 'home',
    'F': 'end',
}

ESCAPE = '\x1b'
PASTE_COMMIT = '\x04'  # Ctrl-D
BACKSPACE = ('\x7f', '\x08')


def get_keyboard_shortcuts_file(keys_arg):
    """Resolve the keyboard shortcuts file path from a preset name or path."""
    if os.path.isfile(keys_arg):
        return keys_arg

    preset_file = os.path.join(os.path.dirname(__file__), f'keys_{keys_arg}.json')
    if os.path.isfile(preset_file):
        return preset_file

    return os.path.join(os.path.dirname(__file__), 'keys_default.json')


def load_keyboard_shortcuts(file_path=None):
    """Load keyboard shortcuts from a JSON file or use defaults.

    If file_path is None, the bundled keys_default.json is used.
    """
    global KEYBOARD_SHORTCUTS

    if not file_path:
        file_path = os.path.join(os.path.dirname(__file__), 'keys_default.json')

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            shortcuts = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logging.error(f"Failed to load keyboard shortcuts from {file_path}: {e}")
        KEYBOARD_SHORTCUTS = DEFAULT_KEYBOARD_SHORTCUTS
        return

    if not isinstance(shortcuts, dict):
        logging.error(f"Keyboard shortcuts in {file_path} must be a JSON object, using defaults")
        KEYBOARD_SHORTCUTS = DEFAULT_KEYBOARD_SHORTCUTS
        return
    KEYBOARD_SHORTCUTS = shortcuts


def resolve_command(key):
    """Map a key name to a command, or None if the key is unbound."""
    for bindings in KEYBOARD_SHORTCUTS.values():
        if not isinstance(bindings, dict):
            continue
        for action, binding in bindings.items():
            if binding == key:
                return action
    return None


def key_name(char):
    return NAMED_KEYS.get(char, char)


def process_input(reader):
    """Read pending bytes from stdin and dispatch them."""
    try:
        data = os.read(sys.stdin.fileno(), 1024)
    except OSError as e:
        logging.error(f"Failed to read input: {e}")
        return
    if data:
        handle_input_data(reader, data.decode('utf-8', errors='ignore'))


def handle_input_data(reader, data):
    """Feed decoded terminal input to the reader one character at a time."""
    for char in data:
        if reader.paste_mode_active:
            _handle_paste_char(reader, char)
        else:
            _handle_command_char(reader, char)


def _handle_paste_char(reader, char):
    # Keys are text while paste mode holds focus; only commit/cancel are special.
    # The mode flips here so the rest of the same read sees the new mode.
    if char == PASTE_COMMIT:
        text, reader.paste_buffer = reader.paste_buffer, ''
        reader.paste_mode_active = False
        reader.post_command(('load_text', text))
    elif char == ESCAPE:
        reader.paste_buffer = ''
        reader.paste_mode_active = False
    elif char in BACKSPACE:
        reader.paste_buffer = reader.paste_buffer[:-1]
    elif char == '\r':
        reader.paste_buffer += '\n'
    else:
        reader.paste_buffer += char


def _handle_command_char(reader, char):
    if char == ESCAPE:
        reader.escape_buffer = char
        return

    if reader.escape_buffer:
        reader.escape_buffer += char
        sequence = reader.escape_buffer

        if sequence.startswith('\x1b[<'):
            if char in 'Mm':
                reader.escape_buffer = ''
                _handle_mouse_sequence(reader, sequence)
            return

        if len(sequence) == 2:
            if char in '[O':
                return
            # Lone escape followed by an ordinary key
            reader.escape_buffer = ''
            _dispatch_key(reader, key_name(char))
            return

        if char.isalpha() or char == '~':
            reader.escape_buffer = ''
            key = ARROW_KEYS.get(char)
            if key:
                _dispatch_key(reader, key)
        return

    _dispatch_key(reader, key_name(char))


def _dispatch_key(reader, key):
    cmd = resolve_command(key)
    if cmd == 'paste':
        reader.paste_mode_active = True
        reader.paste_buffer = ''
    if cmd:
        reader.post_command(cmd)


def _handle_mouse_sequence(reader, sequence):
    """Handle an SGR mouse report such as ESC[<0;12;40M."""
    if not sequence.endswith('M'):
        return
    try:
        button, x_pos, y_pos = (int(part) for part in sequence[3:-1].split(';'))
    except ValueError:
        return
    if button != 0:
        return
    width, height = ui.get_terminal_size()
    percent = ui.progress_percent_at(x_pos, y_pos, width, height)
    if percent is not None:
        reader.post_command(('seek', percent))
