"""
Boundary detection over a word-level transcript.

A boundary is a preferred cut point between two adjacent words: either
the speaker paused longer than the configured threshold, or the first
word closes a sentence/clause with punctuation.
"""

from typing import List, NamedTuple, Optional, Sequence

from beatcut.core.config import BeatConfig
from beatcut.core.models import Word


class PhraseChunk(NamedTuple):
    """A run of words between two boundaries (indices are inclusive)."""

    start_idx: int
    end_idx: int
    start: float
    end: float
    text: str

    @property
    def duration(self) -> float:
        return self.end - self.start


def ends_with_punctuation(token: str, punctuation: str) -> bool:
    """Return True when the trimmed token ends with one of ``punctuation``."""
    stripped = token.strip()
    return bool(stripped) and stripped[-1] in punctuation


def pause_between(current: Word, following: Word) -> float:
    return following.start - current.end


def is_boundary(current: Word, following: Optional[Word], config: BeatConfig) -> bool:
    """Classify the gap after ``current`` as a beat boundary.

    Args:
        current: The word before the gap.
        following: The next word, or None at the end of the stream.
        config: Supplies ``pause_break_sec`` and ``boundary_punctuation``.

    Returns:
        bool: True if the pause exceeds the threshold or ``current`` ends
        with terminating punctuation.
    """
    if ends_with_punctuation(current.text, config.boundary_punctuation):
        return True
    if following is None:
        return False
    return pause_between(current, following) > config.pause_break_sec


def boundary_indices(words: Sequence[Word], config: BeatConfig) -> List[int]:
    """Indices ``i`` such that the gap between words[i] and words[i+1] is a boundary."""
    return [
        i
        for i in range(len(words) - 1)
        if is_boundary(words[i], words[i + 1], config)
    ]


def join_tokens(words: Sequence[Word]) -> str:
    return " ".join(w.text.strip() for w in words if w.text.strip())


def build_phrase_chunks(words: Sequence[Word], config: BeatConfig) -> List[PhraseChunk]:
    """Split the word stream into phrase chunks at every boundary.

    Chunks whose text is blank are dropped; the remaining chunks are in
    stream order and never overlap.
    """
    if not words:
        return []

    chunks: List[PhraseChunk] = []
    cur_start = 0
    cut_points = boundary_indices(words, config) + [len(words) - 1]
    for end_idx in cut_points:
        text = join_tokens(words[cur_start : end_idx + 1])
        if text:
            chunks.append(
                PhraseChunk(
                    start_idx=cur_start,
                    end_idx=end_idx,
                    start=words[cur_start].start,
                    end=words[end_idx].end,
                    text=text,
                )
            )
        cur_start = end_idx + 1
    return chunks
