"""Configuration settings for the RSVP speed reader."""

import os
from platformdirs import user_log_dir

# Reading rate (words per minute)
DEFAULT_RATE = 300
MIN_RATE = 50
MAX_RATE = 888
RATE_STEP = 25  # Up/down arrow adjustment
AVERAGE_READING_RATE = 238  # Used for the "time saved" indicator

# Words revealed per tick
DEFAULT_CHUNK_SIZE = 1
CHUNK_SIZES = (1, 2, 3)

# Left/right arrow skip distance in words
SKIP_WORDS = 10

# Optimal recognition point, as a fraction of the word length
ORP_RATIO = 0.3

# Content shown before anything is loaded
SAMPLE_TITLE = "Speed Reader"
SAMPLE_SOURCE = "Open a file, pipe text, or press p to paste"
SAMPLE_TEXT = (
    "Open a file, pipe text, or paste to get started. This speed reader transforms "
    "any content into rapid serial visual presentation format, allowing you to read "
    "at speeds far beyond traditional reading. The technique displays words one at "
    "a time at a fixed focal point, eliminating eye movements and reducing "
    "subvocalization."
)

# Logging
LOG_DIR = user_log_dir(appname="rsvp", appauthor=False)
LOG_FILE = os.path.join(LOG_DIR, "error.log")

# General settings
SHOW_ERRORS_ON_EXIT = True

# PDF parsing settings
PDF_FILTERS_ENABLED = False  # You can also enable this with the --filter or -f command-line option
PDF_HEADER_MARGIN = 0.1  # Top 10% of page considered header area
PDF_FOOTNOTE_MARGIN = 0.1  # Bottom 10% of page considered footnote area

# UI settings
UI_UPDATE_INTERVAL = 0.033  # Seconds between frames
PROGRESS_BAR_MARGIN = 4  # Columns between the panel edge and the progress bar

# Keyboard settings
# Can be set to "default", "vim", or a path to a custom keyboard shortcuts JSON file
CUSTOM_KEYBOARD_SHORTCUTS = "default"
