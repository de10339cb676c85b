"""Text formatting utilities for the TUI.

Hides the details of markdown rendering and text cleanup.
Everything here is deterministic so rendered parts can be cached.
"""

import re

from rich.markdown import Markdown

from ..session.models import Message
from .config import MESSAGE_TIME_FORMAT


def clean_latex(text: str) -> str:
    """Convert LaTeX notation to plain text equivalents.

    Handles common LaTeX patterns that Rich cannot render:
    - \\( ... \\) inline math -> just the content
    - \\[ ... \\] display math -> just the content
    - $...$ and $$...$$ math -> just the content
    """
    text = re.sub(r'\\\(\s*', '', text)
    text = re.sub(r'\s*\\\)', '', text)
    text = re.sub(r'\\\[\s*', '', text)
    text = re.sub(r'\s*\\\]', '', text)

    # $$ before single $
    text = re.sub(r'\$\$\s*', '', text)
    text = re.sub(r'(?<!\\)\$([^$\n]+)(?<!\\)\$', r'\1', text)

    text = re.sub(r'\\frac\{([^}]*)\}\{([^}]*)\}', r'(\1)/(\2)', text)
    text = re.sub(r'\\sqrt\{([^}]*)\}', r'sqrt(\1)', text)
    text = re.sub(r'\\times', 'x', text)
    text = re.sub(r'\\cdot', '*', text)
    text = re.sub(r'\\leq', '<=', text)
    text = re.sub(r'\\geq', '>=', text)
    text = re.sub(r'\\neq', '!=', text)
    text = re.sub(r'\\approx', '~=', text)
    text = re.sub(r'\\ldots', '...', text)
    text = re.sub(r'\\text\{([^}]*)\}', r'\1', text)
    return text


def render_markdown(text: str) -> Markdown:
    """Convert message text to a Rich renderable."""
    return Markdown(clean_latex(text))


def format_time(message: Message) -> str:
    """Short local time a message was created."""
    return message.metadata.created_at.astimezone().strftime(MESSAGE_TIME_FORMAT)


def message_to_debug_json(message: Message) -> str:
    """Pretty JSON dump of a message for the debug view."""
    return message.model_dump_json(indent=2)
