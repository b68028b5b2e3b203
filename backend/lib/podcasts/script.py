"""
Script utilities for podcast generation.

Handles splitting scripts into TTS-sized chunks and cleaning model output
for natural speech.
"""

import re
from typing import List

MAX_TTS_CHARS = 4000
SENTENCE_BREAK_RATIO = 0.7


def script_failure_placeholder(headline: str) -> str:
    """Spoken stand-in for a story whose script could not be generated."""
    return (
        "I'm sorry, but I encountered an issue generating the detailed script for this story: "
        f"{headline}. Let me move on to the next story."
    )


def chunk_script(script: str, max_chars: int = MAX_TTS_CHARS) -> List[str]:
    """
    Split a script into segments no longer than max_chars.

    A segment that is not the last one ends right after the last ".", "!"
    or "?" in its window when that terminator sits in the final 30% of the
    window; otherwise it is cut at max_chars.

    Args:
        script: Full script text
        max_chars: Maximum characters per segment

    Returns:
        Whitespace-trimmed, non-empty segments in order
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    chunks = []
    position = 0
    length = len(script)

    while position < length:
        window = min(max_chars, length - position)
        end = position + window

        if end < length:
            text = script[position:end]
            last_break = max(text.rfind("."), text.rfind("!"), text.rfind("?"))
            if last_break > window * SENTENCE_BREAK_RATIO:
                end = position + last_break + 1

        chunk = script[position:end].strip()
        if chunk:
            chunks.append(chunk)
        position = end

    return chunks


def clean_for_speech(text: str) -> str:
    """
    Remove markdown formatting for TTS output.

    Args:
        text: Script text as returned by the model

    Returns:
        Plain text suitable for speech synthesis
    """
    # Links keep their text: [text](url) -> text
    text = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", text)
    # Citation references like [1], [2]
    text = re.sub(r"\[\d+\]", "", text)
    # Bold/italic markers and headings
    text = re.sub(r"\*+", "", text)
    text = re.sub(r"(?m)^#+\s*", "", text)
    text = re.sub(r"(?<!\w)_+|_+(?!\w)", "", text)
    # Whitespace
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def estimate_reading_time(script: str, words_per_minute: int = 150) -> int:
    """
    Estimate reading time in seconds.

    Args:
        script: Script text
        words_per_minute: Average speaking rate

    Returns:
        Estimated duration in seconds
    """
    word_count = len(script.split())
    minutes = word_count / words_per_minute
    return int(minutes * 60)
