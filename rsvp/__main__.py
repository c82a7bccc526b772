"""Main entry point for the RSVP speed reader."""

import asyncio
import sys
import termios
import tty
import argparse
import os
import logging
from rich.console import Console
from .reader import SpeedReader
from . import config, input_handler

def setup_logging():
    """Set up file-based logging for the application."""
    os.makedirs(config.LOG_DIR, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        filename=config.LOG_FILE,
        filemode='a',
        force=True,
    )
    logging.info("--- Application Starting ---")

def preprocess_filter_args(args):
    """Preprocess arguments to handle --filter with space-separated values."""
    processed_args = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ['--filter', '-f']:
            processed_args.append(arg)
            i += 1

            # Collect up to two numeric values that follow
            filter_values = []
            while i < len(args) and len(filter_values) < 2:
                try:
                    float(args[i])
                except ValueError:
                    break
                filter_values.append(args[i])
                i += 1

            processed_args.append(' '.join(filter_values))
        else:
            processed_args.append(arg)
            i += 1

    return processed_args

def apply_filter_settings(filter_arg):
    """
    Apply --filter values to the PDF margin settings.

    Raises:
        ValueError: if the values are not numbers or more than two are given.
    """
    config.PDF_FILTERS_ENABLED = True
    filter_values = [float(x) for x in filter_arg.split()]
    if len(filter_values) == 1:
        config.PDF_HEADER_MARGIN = config.PDF_FOOTNOTE_MARGIN = filter_values[0]
    elif len(filter_values) == 2:
        config.PDF_HEADER_MARGIN, config.PDF_FOOTNOTE_MARGIN = filter_values
    elif len(filter_values) > 2:
        raise ValueError("--filter accepts at most 2 values (header margin, footnote margin)")

def build_parser():
    parser = argparse.ArgumentParser(
        prog="rsvp",
        description="A terminal speed reader using rapid serial visual presentation",
    )
    parser.add_argument("file_path", nargs='?', help="Path to a .txt, .md, .html, .pdf, .docx or .rtf file. If omitted, piped stdin or the sample text is read.")
    parser.add_argument(
        "-w", "--wpm",
        type=int,
        default=config.DEFAULT_RATE,
        help=f"Reading rate in words per minute, {config.MIN_RATE}-{config.MAX_RATE} (default: {config.DEFAULT_RATE})",
    )
    parser.add_argument(
        "-c", "--chunk",
        type=int,
        choices=config.CHUNK_SIZES,
        default=config.DEFAULT_CHUNK_SIZE,
        help="Words shown at a time (default: 1)",
    )
    parser.add_argument(
        "-k", "--keys",
        default="default",
        help="Keyboard configuration. Use a preset name (vim, default) or a path to a JSON file. Default: default",
    )
    parser.add_argument(
        "-p", "--paste",
        action='store_true',
        help="Start in paste mode",
    )
    parser.add_argument(
        "-f", "--filter",
        nargs='?',
        const='',
        help="Enable PDF header/footer filters. Usage: --filter (defaults), --filter 0.15 (both margins), --filter 0.12 0.20 (header, footnote)",
    )
    return parser

def open_terminal_input():
    """Return the text piped on stdin and reattach stdin to the terminal."""
    text = sys.stdin.read()
    tty_fd = os.open('/dev/tty', os.O_RDONLY)
    os.dup2(tty_fd, sys.stdin.fileno())
    os.close(tty_fd)
    return text

async def main():
    parser = build_parser()
    args = parser.parse_args(preprocess_filter_args(sys.argv[1:]))

    console = Console()

    if args.filter is not None:
        try:
            apply_filter_settings(args.filter)
        except ValueError as e:
            console.print(f"[red]Error: Invalid filter values '{args.filter}': {e}[/red]")
            sys.exit(1)

    setup_logging()

    piped_text = None
    if args.file_path:
        args.file_path = os.path.abspath(args.file_path)
    elif not sys.stdin.isatty():
        try:
            piped_text = open_terminal_input()
        except OSError as e:
            console.print(f"[red]Error: No terminal available for keyboard input: {e}[/red]")
            sys.exit(1)

    if args.keys != "default":
        keyboard_shortcuts_file = input_handler.get_keyboard_shortcuts_file(args.keys)
    else:
        keyboard_shortcuts_file = input_handler.get_keyboard_shortcuts_file(config.CUSTOM_KEYBOARD_SHORTCUTS)
    input_handler.load_keyboard_shortcuts(keyboard_shortcuts_file)

    reader = SpeedReader(
        args.file_path,
        text=piped_text,
        rate=args.wpm,
        chunk_size=args.chunk,
        paste_mode=args.paste,
    )

    # Hide cursor, enable mouse click reporting in SGR mode, clear screen
    sys.stdout.write('\033[?1000h\033[?1006h\033[?25l\033[2J')
    sys.stdout.flush()

    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        await reader.run()
    finally:
        sys.stdout.write('\033[?1000l\033[?1006l\033[?25h')
        sys.stdout.flush()
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)

def cli():
    """Synchronous entry point for the command-line interface."""
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
    except Exception as e:
        logging.critical(f"Fatal error in application startup: {e}", exc_info=True)

if __name__ == "__main__":
    cli()
