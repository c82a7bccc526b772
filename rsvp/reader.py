"""Reading session: owns the engine and wires input, commands and the UI to the event loop."""

import os
import sys
import asyncio
import signal
import logging
from rich.console import Console

from . import config, content_loader, ui, input_handler
from .engine import PlaybackEngine

class SpeedReader:
    """
    Terminal session around a PlaybackEngine.

    Input callbacks and signal handlers only enqueue commands; the command
    loop applies them to the engine one at a time on the event loop thread.
    """

    def __init__(self, file_path=None, text=None, rate=config.DEFAULT_RATE,
                 chunk_size=config.DEFAULT_CHUNK_SIZE, paste_mode=False):
        self.console = Console()
        self.loop = None
        self.file_path = file_path

        self._initialize_state()
        self.engine = PlaybackEngine(rate=rate, chunk_size=chunk_size)
        self._load_initial_content(file_path, text)
        self.paste_mode_active = paste_mode

    def _initialize_state(self):
        """Initialize basic application state."""
        self.running = True
        self.command_queue = asyncio.Queue()
        self.ui_update_task = None
        self.command_task = None
        self.render_lock = asyncio.Lock()
        self.last_rendered_state = None

        # Input state
        self.escape_buffer = ''
        self.paste_mode_active = False
        self.paste_buffer = ''

    def _load_initial_content(self, file_path, text):
        if file_path:
            self.console.print(f"[bold cyan]Loading document: {os.path.basename(file_path)}...[/bold cyan]")
            if content_loader.load_file(self.engine, file_path):
                self.console.print(f"[green]Document loaded successfully! ({self.engine.word_count} words)[/green]")
            else:
                self.console.print(f"[bold red]Error: {self.engine.error}[/bold red]")
        elif text is not None:
            content_loader.load_pasted_text(
                self.engine, text,
                title=content_loader.STDIN_TITLE, source=content_loader.STDIN_SOURCE,
            )

    def post_command(self, cmd):
        self.command_queue.put_nowait(cmd)

    def _post_command_threadsafe(self, cmd):
        if self.loop and self.loop.is_running():
            self.loop.call_soon_threadsafe(self.post_command, cmd)

    def handle_command(self, cmd):
        """Apply one command to the engine or the session."""
        engine = self.engine

        if isinstance(cmd, tuple):
            command_name, data = cmd
            if command_name == 'seek':
                engine.seek_to(data)
            elif command_name == 'load_file':
                content_loader.load_file(engine, data)
            elif command_name == 'load_text':
                content_loader.load_pasted_text(engine, data)
            else:
                logging.error(f"Unknown command: {command_name}")
            return

        if cmd == 'quit':
            self.running = False
        elif cmd == 'toggle':
            engine.toggle()
        elif cmd == 'play':
            engine.play()
        elif cmd == 'pause':
            engine.pause()
        elif cmd == 'restart':
            engine.restart()
        elif cmd == 'set_start':
            engine.set_start_point()
        elif cmd == 'skip_back':
            engine.skip(-config.SKIP_WORDS)
        elif cmd == 'skip_forward':
            engine.skip(config.SKIP_WORDS)
        elif cmd == 'increase_speed':
            engine.adjust_rate(config.RATE_STEP)
        elif cmd == 'decrease_speed':
            engine.adjust_rate(-config.RATE_STEP)
        elif cmd.startswith('chunk_'):
            engine.set_chunk_size(int(cmd.split('_', 1)[1]))
        elif cmd == 'paste':
            engine.pause()
            # The input handler may already have switched modes and buffered text
            if not self.paste_mode_active:
                self.paste_mode_active = True
                self.paste_buffer = ''
        elif cmd == 'commit_paste':
            text, self.paste_buffer = self.paste_buffer, ''
            self.paste_mode_active = False
            content_loader.load_pasted_text(engine, text)
        elif cmd == 'cancel_paste':
            self.paste_buffer = ''
            self.paste_mode_active = False
        else:
            logging.error(f"Unknown command: {cmd}")

    async def _command_loop(self):
        while self.running:
            try:
                cmd = await self.command_queue.get()
                self.handle_command(cmd)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logging.error(f"Error handling command: {e}", exc_info=True)

    async def _ui_update_loop(self):
        while self.running:
            try:
                await ui.display_ui(self)
                await asyncio.sleep(config.UI_UPDATE_INTERVAL)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logging.error(f"Error in UI update loop: {e}", exc_info=True)
                await asyncio.sleep(config.UI_UPDATE_INTERVAL)

    def _handle_resize(self, signum, frame):
        self.last_rendered_state = None

    def _handle_exit_signal(self, signum, frame):
        self.running = False
        self._post_command_threadsafe('quit')

    async def _shutdown(self):
        self.running = False
        signal.signal(signal.SIGWINCH, signal.SIG_DFL)
        signal.signal(signal.SIGINT, signal.SIG_DFL)
        signal.signal(signal.SIGTERM, signal.SIG_DFL)
        try:
            self.loop.remove_reader(sys.stdin.fileno())
        except (ValueError, OSError):
            pass

        self.engine.close()

        for task in (self.ui_update_task, self.command_task):
            if task and not task.done():
                task.cancel()
                try:
                    await asyncio.wait_for(task, timeout=1.0)
                except (asyncio.CancelledError, asyncio.TimeoutError):
                    pass

        logging.info("--- Application Shutting Down ---")
        sys.stdout.write('\033[2J\033[H\033[?25h')
        sys.stdout.flush()

        if config.SHOW_ERRORS_ON_EXIT:
            show_session_errors()

    async def run(self):
        self.loop = asyncio.get_running_loop()
        self.loop.add_reader(sys.stdin.fileno(), input_handler.process_input, self)

        signal.signal(signal.SIGWINCH, self._handle_resize)
        signal.signal(signal.SIGINT, self._handle_exit_signal)
        signal.signal(signal.SIGTERM, self._handle_exit_signal)

        self.ui_update_task = asyncio.create_task(self._ui_update_loop())
        self.command_task = asyncio.create_task(self._command_loop())

        try:
            # Ends when the command loop sees 'quit'
            await self.command_task
        finally:
            await self._shutdown()

def show_session_errors():
    """Print errors logged since the last application start, then clear the log."""
    try:
        with open(config.LOG_FILE, 'r', encoding='utf-8') as f:
            lines = f.readlines()
    except FileNotFoundError:
        return

    start_indices = [i for i, line in enumerate(lines) if "--- Application Starting ---" in line]
    last_start_index = start_indices[-1] if start_indices else 0

    error_lines = [line.strip() for line in lines[last_start_index:] if " - ERROR - " in line]
    if error_lines:
        error_console = Console()
        error_console.print("\n[bold red]Errors recorded during this session:[/bold red]")
        for error in error_lines:
            message = ' - '.join(error.split(' - ')[3:])
            error_console.print(f"- {message}")

    os.remove(config.LOG_FILE)
