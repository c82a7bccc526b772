"""Content acquisition: turn files and pasted text into engine content."""

import logging
import os
import re
from html.parser import HTMLParser

import fitz
import markdown
from docx import Document
from striprtf.striprtf import rtf_to_text

from . import config

SUPPORTED_EXTENSIONS = ('.txt', '.md', '.html', '.htm', '.pdf', '.docx', '.rtf')

PASTE_TITLE = "Pasted Text"
PASTE_SOURCE = "Manual input"
STDIN_TITLE = "Standard Input"
STDIN_SOURCE = "Piped text"


class ContentError(Exception):
    """Raised when a file cannot be turned into readable text."""


class _TextExtractor(HTMLParser):
    """Collects visible text from HTML, skipping scripts and styles."""

    _SKIP_TAGS = {'script', 'style', 'head', 'title'}
    _BLOCK_TAGS = {'p', 'div', 'br', 'li', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'tr', 'blockquote', 'pre'}

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in self._SKIP_TAGS:
            self._skip_depth += 1
        elif tag in self._BLOCK_TAGS:
            self.parts.append('\n')

    def handle_endtag(self, tag):
        if tag in self._SKIP_TAGS and self._skip_depth:
            self._skip_depth -= 1
        elif tag in self._BLOCK_TAGS:
            self.parts.append('\n')

    def handle_data(self, data):
        if not self._skip_depth:
            self.parts.append(data)

    def get_text(self):
        return ''.join(self.parts)


def html_to_text(html):
    parser = _TextExtractor()
    parser.feed(html)
    parser.close()
    return parser.get_text()


def extract_text(file_path):
    """
    Extract plain text from a file based on its extension.

    Raises:
        ContentError: if the file type is unsupported, the file cannot be
            read, or it contains no text.
    """
    if not os.path.isfile(file_path):
        raise ContentError(f"File not found: {file_path}")

    file_extension = os.path.splitext(file_path)[1].lower()
    if file_extension == '.txt':
        text = _extract_text_txt(file_path)
    elif file_extension == '.md':
        text = _extract_text_md(file_path)
    elif file_extension in ('.html', '.htm'):
        text = html_to_text(_read_text_file(file_path))
    elif file_extension == '.pdf':
        text = _extract_text_pdf(file_path)
    elif file_extension == '.docx':
        text = _extract_text_docx(file_path)
    elif file_extension == '.rtf':
        text = _extract_text_rtf(file_path)
    else:
        raise ContentError(f"Unsupported file type '{file_extension}'. "
                           f"Supported formats: {', '.join(SUPPORTED_EXTENSIONS)}")

    if not text or not text.strip():
        raise ContentError("No text could be extracted from the file.")
    return text


def _read_text_file(file_path):
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    except UnicodeDecodeError:
        try:
            with open(file_path, 'r', encoding='latin-1') as f:
                return f.read()
        except OSError as e:
            raise ContentError(f"Failed to read file: {e}") from e
    except OSError as e:
        raise ContentError(f"Failed to read file: {e}") from e


def _extract_text_txt(file_path):
    return _read_text_file(file_path).replace('\r\n', '\n')


def _extract_text_md(file_path):
    html = markdown.markdown(_read_text_file(file_path))
    return html_to_text(html)


def _extract_text_pdf(file_path):
    def in_header(block, page_height):
        return block[3] <= page_height * config.PDF_HEADER_MARGIN

    def in_footer(block, page_height):
        return block[1] >= page_height * (1 - config.PDF_FOOTNOTE_MARGIN)

    try:
        doc = fitz.open(file_path)
    except Exception as e:
        raise ContentError(f"Failed to open PDF: {e}") from e

    pages = []
    filtered = 0
    try:
        for page in doc:
            page_height = page.rect.height
            blocks = sorted(page.get_text("blocks"), key=lambda b: b[1])
            page_text = []
            for block in blocks:
                if config.PDF_FILTERS_ENABLED and (in_header(block, page_height) or in_footer(block, page_height)):
                    filtered += 1
                    continue
                # Rejoin words hyphenated across line breaks
                page_text.append(block[4].replace('-\n', '').replace('\n', ' ').strip())
            pages.append(' '.join(page_text))
    finally:
        doc.close()

    if filtered:
        logging.info(f"Filtered {filtered} header/footer blocks from {os.path.basename(file_path)}")
    return '\n\n'.join(pages)


def _extract_text_docx(file_path):
    try:
        doc = Document(file_path)
    except Exception as e:
        raise ContentError(f"Failed to read DOCX file: {e}") from e
    return '\n'.join(para.text for para in doc.paragraphs if para.text and not para.text.isspace())


def _extract_text_rtf(file_path):
    return rtf_to_text(_read_text_file(file_path))


def title_for_path(file_path):
    name = os.path.splitext(os.path.basename(file_path))[0]
    return re.sub(r'[_-]+', ' ', name).strip() or name


def load_file(engine, file_path):
    """
    Load a file into the engine.

    On failure the engine keeps its current content and shows the error.

    Returns:
        bool: True if the content was loaded.
    """
    try:
        text = extract_text(file_path)
    except ContentError as e:
        engine.report_error(e)
        return False
    engine.load_content(title_for_path(file_path), os.path.abspath(file_path), text)
    return True


def load_pasted_text(engine, text, title=PASTE_TITLE, source=PASTE_SOURCE):
    """Load pasted text; whitespace-only text is reported instead of loaded."""
    if not text or not text.strip():
        engine.report_error("Nothing to read: the pasted text is empty.")
        return False
    engine.load_content(title, source, text)
    return True
