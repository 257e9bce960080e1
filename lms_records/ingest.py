from __future__ import annotations
import logging
from pathlib import Path
from typing import Union

from .errors import ParseError

log = logging.getLogger(__name__)

DEFAULT_INPUT = "input.txt"


def normalize_newlines(text: str) -> str:
    if not text:
        return ""
    text = text.replace("\ufeff", "")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def read_input(path: Union[str, Path] = DEFAULT_INPUT) -> str:
    """Read the whole input file. Raises ParseError if it can't be used at all."""
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise ParseError(f"{p} file not found") from e
    except UnicodeDecodeError as e:
        raise ParseError(f"{p} is not valid UTF-8 text") from e
    except OSError as e:
        raise ParseError(f"Could not read {p}: {e.strerror or e}") from e

    text = normalize_newlines(raw)
    if not text.strip():
        raise ParseError(f"{p} is empty")
    log.debug("read %d chars (%d lines) from %s", len(text), text.count("\n") + 1, p)
    return text
