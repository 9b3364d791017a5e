"""
Reading dictionary text from disk.

Toolbox files are expected to be UTF-8. Files in a legacy encoding are
rejected, with the encoding chardet guesses for them included in the error
so the user knows what to convert from.
"""

import logging
from pathlib import Path
from typing import Optional

import chardet

from ..errors import FileReadError, ManagedFileNotFoundError

logger = logging.getLogger(__name__)


# Sample size used for encoding detection
DETECTION_SAMPLE_SIZE = 10000
MIN_CONFIDENCE = 0.7


def detect_encoding(data: bytes) -> Optional[str]:
    """
    Guess the encoding of raw file contents.

    Args:
        data: File contents (only a leading sample is inspected)

    Returns:
        Detected encoding name, or None if chardet is not confident enough
    """
    detection = chardet.detect(data[:DETECTION_SAMPLE_SIZE])
    if detection and detection['encoding'] and detection['confidence'] > MIN_CONFIDENCE:
        return detection['encoding']
    return None


def decode_text(path: Path, data: bytes) -> str:
    """Decode UTF-8 file contents, raising FileReadError with an encoding hint"""
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as e:
        encoding = detect_encoding(data)
        logger.warning(f"{path} is not valid UTF-8 (detected encoding: {encoding})")
        msg = f"invalid UTF-8 sequence at byte {e.start}"
        if encoding:
            msg += f", the file looks like {encoding}"
        raise FileReadError(path, msg) from e


def read_text_file(path: Path) -> str:
    """
    Read a managed text file.

    Raises:
        ManagedFileNotFoundError: if the file does not exist
        FileReadError: if the file cannot be read or is not UTF-8
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError as e:
        raise ManagedFileNotFoundError(path) from e
    except OSError as e:
        raise FileReadError(path, str(e)) from e

    return decode_text(path, data)
