"""
Beat building and normalization.

``build_beats`` accumulates words into beats using boundaries as
preferred cut points; ``normalize_beats`` turns that raw list into a
contiguous sequence covering ``[0, audio_length]`` whose cut points sit
on real word boundaries.
"""

import bisect
import logging
import math
import re
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from beatcut.core.config import BeatConfig
from beatcut.core.models import AssetType, Beat, Word
from utils.boundary_utils import PhraseChunk, is_boundary, join_tokens

logger = logging.getLogger(__name__)

_EPS = 1e-6


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def audio_length_of(words: Sequence[Word]) -> float:
    return max((w.end for w in words), default=0.0)


def prefers_video(text: str, cue_words: Sequence[str]) -> bool:
    """True when the text mentions an on-screen action (pour, stir, chop...)."""
    lowered = text.lower()
    return any(re.search(rf"\b{re.escape(cue)}", lowered) for cue in cue_words)


def make_beat(words: Sequence[Word], config: BeatConfig) -> Beat:
    text = re.sub(r"\s+", " ", join_tokens(words)).strip()
    preference = (
        AssetType.VIDEO if prefers_video(text, config.video_cue_words) else AssetType.IMAGE
    )
    return Beat(
        start=words[0].start,
        end=words[-1].end,
        text=text,
        visual_query=text,
        asset_preference=preference,
    )


def build_beats(words: Sequence[Word], config: BeatConfig) -> List[Beat]:
    """Accumulate words into raw (non-normalized) beats.

    A beat is flushed when it reaches ``max_beat_sec`` (regardless of
    boundaries), or when a boundary follows the current word and the beat
    is at least ``min_beat_sec`` long. The end of the stream always
    flushes, so the final beat may be short.
    """
    beats: List[Beat] = []
    current: List[Word] = []

    for i, word in enumerate(words):
        current.append(word)
        following = words[i + 1] if i + 1 < len(words) else None
        if following is None:
            break

        duration = word.end - current[0].start
        if duration >= config.max_beat_sec:
            beats.append(make_beat(current, config))
            current = []
        elif duration >= config.min_beat_sec and is_boundary(word, following, config):
            beats.append(make_beat(current, config))
            current = []

    if current:
        beats.append(make_beat(current, config))
    return beats


def _join_distinct(a: str, b: str) -> str:
    if not a:
        return b
    if not b or a == b:
        return a
    return f"{a} {b}"


def merge_pair(first: Beat, second: Beat) -> Beat:
    """Merge two adjacent beats; video wins the asset preference."""
    preference = (
        AssetType.VIDEO
        if AssetType.VIDEO in (first.asset_preference, second.asset_preference)
        else AssetType.IMAGE
    )
    return Beat(
        start=first.start,
        end=second.end,
        text=_join_distinct(first.text, second.text),
        visual_query=_join_distinct(first.visual_query, second.visual_query),
        asset_preference=preference,
    )


def split_beat(beat: Beat, config: BeatConfig) -> List[Beat]:
    """Slice a beat into equal chunks of roughly ``config.split_target_sec``."""
    duration = beat.duration
    chunks = max(2, math.ceil(duration / config.split_target_sec))
    step = duration / chunks
    out: List[Beat] = []
    for k in range(chunks):
        start = beat.start + step * k
        end = beat.end if k == chunks - 1 else beat.start + step * (k + 1)
        out.append(replace(beat, start=start, end=end))
    return out


def split_overlong(beats: Sequence[Beat], config: BeatConfig) -> List[Beat]:
    limit = config.max_beat_sec + config.split_tolerance_sec
    out: List[Beat] = []
    for beat in beats:
        if beat.duration > limit:
            out.extend(split_beat(beat, config))
        else:
            out.append(beat)
    return out


def merge_undersized(beats: Sequence[Beat], config: BeatConfig) -> List[Beat]:
    """Fold beats shorter than ``min_beat_sec`` into their predecessor.

    A short leading beat absorbs the beat that follows it. A short final
    beat is kept as a partial beat when merging it would overflow the
    split limit; any other merge that overflows is re-split.
    """
    limit = config.max_beat_sec + config.split_tolerance_sec
    out: List[Beat] = []
    for i, beat in enumerate(beats):
        if not out:
            out.append(beat)
            continue

        prev = out[-1]
        if prev.duration >= config.min_beat_sec and beat.duration >= config.min_beat_sec:
            out.append(beat)
            continue

        merged = merge_pair(prev, beat)
        is_last = i == len(beats) - 1
        if (
            is_last
            and prev.duration >= config.min_beat_sec
            and merged.duration > limit
        ):
            out.append(beat)
            continue

        out.pop()
        if merged.duration > limit:
            out.extend(split_beat(merged, config))
        else:
            out.append(merged)
    return out


def _drop_empty(beats: Sequence[Beat]) -> List[Beat]:
    """Absorb zero-length beats into a neighbour, keeping their text."""
    out: List[Beat] = []
    pending: Optional[Beat] = None
    for beat in beats:
        if beat.end - beat.start <= _EPS:
            if out:
                out[-1] = merge_pair(out[-1], beat)
            else:
                pending = beat if pending is None else merge_pair(pending, beat)
            continue
        if pending is not None:
            beat = merge_pair(pending, beat)
            pending = None
        out.append(beat)
    if not out and pending is not None:
        out.append(pending)
    return out


def enforce_contiguity(beats: Sequence[Beat], audio_length: float) -> List[Beat]:
    """Re-stamp beats so they tile ``[0, audio_length]`` with no gaps or overlaps.

    Each beat starts where the previous one ended (pauses are absorbed by
    the following beat); the last beat ends at ``audio_length``.
    """
    if not beats:
        return []
    out: List[Beat] = []
    cursor = 0.0
    last = len(beats) - 1
    for i, beat in enumerate(beats):
        end = audio_length if i == last else clamp(beat.end, cursor, audio_length)
        out.append(replace(beat, start=cursor, end=end))
        cursor = end
    return _drop_empty(out)


def word_boundaries(words: Sequence[Word]) -> List[float]:
    return sorted({w.start for w in words} | {w.end for w in words})


def nearest_boundary(t: float, boundaries: Sequence[float]) -> float:
    """Nearest value in sorted ``boundaries``; ties go to the earlier one."""
    if not boundaries:
        return t
    pos = bisect.bisect_left(boundaries, t)
    if pos == 0:
        return boundaries[0]
    if pos == len(boundaries):
        return boundaries[-1]
    lower, upper = boundaries[pos - 1], boundaries[pos]
    return lower if (t - lower) <= (upper - t) else upper


def _duration_bounds(config: BeatConfig) -> Tuple[float, float]:
    return (
        config.min_beat_sec - _EPS,
        config.max_beat_sec + config.split_tolerance_sec + _EPS,
    )


def _within_bounds(
    cuts: Sequence[float], start: float, end: float, config: BeatConfig
) -> bool:
    lo, hi = _duration_bounds(config)
    edges = [start, *cuts, end]
    spans = [b - a for a, b in zip(edges, edges[1:])]
    # the final beat may be short but never empty
    return all(lo <= s <= hi for s in spans[:-1]) and _EPS < spans[-1] <= hi


def _bounded_cuts(
    targets: Sequence[float],
    boundaries: Sequence[float],
    start: float,
    end: float,
    config: BeatConfig,
) -> Optional[List[float]]:
    """Word-edge cut points that keep every beat within the duration bounds.

    Among all such placements, the one with the smallest total distance
    from ``targets`` wins; equal costs keep the earlier edge. Returns None
    when no placement exists.
    """
    lo, hi = _duration_bounds(config)
    # each layer holds (edge, cost, index of the predecessor in the layer before)
    prev: List[Tuple[float, float, int]] = [(start, 0.0, -1)]
    layers: List[List[Tuple[float, float, int]]] = []
    for target in targets:
        layer: List[Tuple[float, float, int]] = []
        for edge in boundaries:
            if not start < edge < end or abs(edge - target) > hi:
                continue
            best = -1
            for j, (p_edge, p_cost, _) in enumerate(prev):
                if lo <= edge - p_edge <= hi and (best < 0 or p_cost < prev[best][1]):
                    best = j
            if best >= 0:
                layer.append((edge, prev[best][1] + abs(edge - target), best))
        if not layer:
            return None
        layers.append(layer)
        prev = layer

    best = -1
    for j, (edge, cost, _) in enumerate(prev):
        if _EPS < end - edge <= hi and (best < 0 or cost < prev[best][1]):
            best = j
    if best < 0:
        return None

    cuts: List[float] = []
    for layer in reversed(layers):
        edge, _, back = layer[best]
        cuts.append(edge)
        best = back
    return cuts[::-1]


def snap_to_word_boundaries(
    beats: Sequence[Beat],
    words: Sequence[Word],
    config: Optional[BeatConfig] = None,
) -> List[Beat]:
    """Move every interior cut point onto a word start/end.

    Each cut goes to its nearest word edge. With a ``config``, a placement
    that would push a beat outside ``[min_beat_sec, max_beat_sec +
    split_tolerance_sec]`` is replaced by the closest word-edge placement
    that keeps every beat in bounds (the final beat may stay short). When
    no such placement exists the nearest edges are kept.

    The outer edges (0 and the audio length) are left alone. Cuts that
    collapse onto the same boundary produce empty beats, which are folded
    into their neighbours.
    """
    if len(beats) < 2 or not words:
        return list(beats)
    boundaries = word_boundaries(words)
    start, end = beats[0].start, beats[-1].end
    targets = [beat.end for beat in beats[:-1]]

    cuts: List[float] = []
    cursor = start
    for target in targets:
        cursor = clamp(nearest_boundary(target, boundaries), cursor, end)
        cuts.append(cursor)
    if config is not None and not _within_bounds(cuts, start, end, config):
        bounded = _bounded_cuts(targets, boundaries, start, end, config)
        if bounded is not None:
            logger.debug("Moved cuts off nearest word edges to keep %d beats in bounds", len(beats))
            cuts = bounded

    out: List[Beat] = []
    cursor = start
    for beat, cut in zip(beats, [*cuts, end]):
        out.append(replace(beat, start=cursor, end=cut))
        cursor = cut
    return _drop_empty(out)


def normalize_beats(
    beats: Sequence[Beat],
    words: Sequence[Word],
    config: BeatConfig,
    audio_length: Optional[float] = None,
) -> List[Beat]:
    """Split overlong beats, merge undersized ones, tile the timeline and snap cuts.

    Gaps are closed before measuring durations so that pauses absorbed by
    contiguity are accounted for by the split/merge passes.
    """
    if not beats:
        return []
    total = audio_length if audio_length is not None else audio_length_of(words)

    normalized = enforce_contiguity(beats, total)
    normalized = split_overlong(normalized, config)
    normalized = merge_undersized(normalized, config)
    normalized = enforce_contiguity(normalized, total)
    normalized = snap_to_word_boundaries(normalized, words, config)

    logger.debug(
        "Normalized %d raw beats into %d beats over %.2fs",
        len(beats),
        len(normalized),
        total,
    )
    return normalized


def plan_beats(
    words: Sequence[Word],
    config: BeatConfig,
    audio_length: Optional[float] = None,
) -> List[Beat]:
    """Build and normalize beats; an empty stream yields an empty list."""
    if not words:
        return []
    return normalize_beats(build_beats(words, config), words, config, audio_length)


def desired_beat_count(
    audio_length: float,
    config: BeatConfig,
    target_duration: Optional[float] = None,
) -> int:
    """Scene count to aim for when grouping phrase chunks into beats."""
    ideal = clamp(
        (target_duration or audio_length) / 5, config.min_beat_sec, config.max_beat_sec
    )
    return int(clamp(round(audio_length / ideal), 3, 8))


def beats_from_chunk_groups(
    chunks: Sequence[PhraseChunk],
    group_end_indices: Sequence[int],
    config: BeatConfig,
) -> List[Beat]:
    """Turn grouped phrase chunks into raw beats.

    Each end index closes a group of adjacent chunks; indices are clamped,
    de-duplicated and sorted, and the final chunk always closes a group.
    """
    if not chunks:
        return []
    last = len(chunks) - 1
    cuts = sorted({int(clamp(i, 0, last)) for i in group_end_indices} | {last})

    beats: List[Beat] = []
    first = 0
    for cut in cuts:
        group = chunks[first : cut + 1]
        text = re.sub(r"\s+", " ", " ".join(c.text for c in group)).strip()
        preference = (
            AssetType.VIDEO
            if prefers_video(text, config.video_cue_words)
            else AssetType.IMAGE
        )
        beats.append(
            Beat(
                start=group[0].start,
                end=group[-1].end,
                text=text,
                visual_query=text,
                asset_preference=preference,
            )
        )
        first = cut + 1
    return beats
