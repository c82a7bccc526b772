"""
RSVP - Terminal Speed Reader

Rapid serial visual presentation of text, PDF, DOCX, RTF, HTML and Markdown
content with a fixed focal point, adjustable rate and chunk size, seek and
resume-point controls. Rich terminal UI with configurable keyboard shortcuts.
"""

__version__ = "0.1.0"
__author__ = "Starry Eyes"
