"""
File I/O service for loading texts to compare.

Handles:
- Binary detection
- Strict decoding (UTF-8 and byte-order marks), never best-effort
- Encoding guesses for files that fail to decode
- Line ending detection
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import chardet

from devcompare.core.diff.line_splitter import detect_line_ending, split_lines
from devcompare.core.models import LineEnding


@dataclass
class FileContent:
    """Container for file content with metadata."""
    content: str
    lines: list[str]
    encoding: str
    line_ending: LineEnding
    bom: bool
    size: int

    @property
    def line_count(self) -> int:
        return len(self.lines)


@dataclass
class ReadResult:
    """Result of a file read operation."""
    success: bool
    content: Optional[FileContent] = None
    error: Optional[str] = None
    is_binary: bool = False
    is_encoding_error: bool = False
    is_oversized: bool = False


class FileIOService:
    """Service for reading text files safely."""

    # Byte-order marks and the decoder that strips them
    BOMS = [
        (b'\xef\xbb\xbf', 'utf-8-sig'),
        (b'\xff\xfe', 'utf-16'),
        (b'\xfe\xff', 'utf-16'),
    ]

    # Binary file signatures (magic bytes)
    BINARY_SIGNATURES = [
        b'\x89PNG',        # PNG
        b'\xff\xd8\xff',   # JPEG
        b'GIF8',           # GIF
        b'PK\x03\x04',     # ZIP
        b'\x1f\x8b',       # GZIP
        b'%PDF',           # PDF
        b'\x7fELF',        # ELF
        b'MZ',             # Windows executable
    ]

    def __init__(
        self,
        default_encoding: str = 'utf-8',
        binary_check_size: int = 8192,
        max_text_size: int = 10 * 1024 * 1024
    ):
        self.default_encoding = default_encoding
        self.binary_check_size = binary_check_size
        self.max_text_size = max_text_size

    def read_text(
        self,
        path: Path | str,
        max_size: Optional[int] = None
    ) -> ReadResult:
        """
        Read a text file for comparison.

        Args:
            path: Path to the file
            max_size: Maximum file size in bytes (service default if None)

        Returns:
            ReadResult with content or error information
        """
        path = Path(path)
        limit = self.max_text_size if max_size is None else max_size

        if not path.exists():
            return ReadResult(success=False, error=f"File not found: {path}")

        if not path.is_file():
            return ReadResult(success=False, error=f"Not a file: {path}")

        try:
            file_size = path.stat().st_size
            if file_size > limit:
                return ReadResult(
                    success=False,
                    is_oversized=True,
                    error=f"File too large for text comparison ({file_size / 1024 / 1024:.2f} MB). "
                          f"Max size is {limit / 1024 / 1024:.2f} MB."
                )

            raw_content = path.read_bytes()
        except PermissionError:
            return ReadResult(success=False, error=f"Permission denied: {path}")
        except OSError as e:
            return ReadResult(success=False, error=f"OS error: {e}")

        if self.is_binary(raw_content[:self.binary_check_size]):
            logging.debug(f"FileIOService - Binary content detected in {path}")
            return ReadResult(success=False, is_binary=True,
                              error=f"File appears to be binary: {path}")

        encoding, bom = self._choose_encoding(raw_content)
        try:
            content = raw_content.decode(encoding)
        except UnicodeDecodeError as e:
            guess = self.guess_encoding(raw_content)
            hint = f" (looks like {guess})" if guess else ""
            logging.warning(f"FileIOService - Could not decode {path} as {encoding}: {e.reason}")
            return ReadResult(
                success=False,
                is_encoding_error=True,
                error=f"{path} is not valid {encoding} at byte {e.start}{hint}"
            )

        return ReadResult(
            success=True,
            content=FileContent(
                content=content,
                lines=[line.content for line in split_lines(content)] if content else [],
                encoding=encoding,
                line_ending=detect_line_ending(content),
                bom=bom,
                size=len(raw_content)
            )
        )

    def is_binary(self, chunk: bytes) -> bool:
        """Check if a leading chunk of file data looks binary."""
        # UTF-16 text is full of NUL bytes
        if any(chunk.startswith(bom) for bom, encoding in self.BOMS if encoding == 'utf-16'):
            return False

        for sig in self.BINARY_SIGNATURES:
            if chunk.startswith(sig):
                return True

        if b'\x00' in chunk:
            return True

        # Check ratio of non-text bytes
        non_text = sum(1 for b in chunk if b < 9 or (b > 13 and b < 32))
        if len(chunk) > 0 and non_text / len(chunk) > 0.3:
            return True

        return False

    def guess_encoding(self, content: bytes) -> Optional[str]:
        """Guess the encoding of content that failed strict decoding."""
        if not content:
            return None

        result = chardet.detect(content)

        if result['confidence'] > 0.5 and result['encoding']:
            return result['encoding'].lower()

        return None

    def _choose_encoding(self, content: bytes) -> tuple[str, bool]:
        """Pick the decoder from the byte-order mark, if any."""
        for bom, encoding in self.BOMS:
            if content.startswith(bom):
                return encoding, True
        return self.default_encoding, False
