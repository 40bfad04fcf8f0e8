"""Transcript format conversion.

Pure functions from a segment list to plain text, reflowed paragraphs,
SRT and WebVTT. Empty input always yields well-formed empty output.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict
from datetime import date

from ytscribe.core.models import ExtractionResult, LegacyContent, Segment, TranscriptVariant
from ytscribe.transcript.cache import default_language

FORMATS = ("txt", "paragraphs", "srt", "vtt", "json")

# Gap (seconds) after a segment that counts as a natural pause
PARAGRAPH_GAP = 2.0
# Sentence terminators after which a paragraph may break without a pause
SENTENCES_PER_PARAGRAPH = 4

_SENTENCE_END_RE = re.compile(r"[.!?][\"']?\s*$")
_SENTENCE_MARK_RE = re.compile(r"[.!?]+")
_NEWLINES_RE = re.compile(r"\n+")


def format_timestamp(seconds: float, vtt: bool = False) -> str:
    """Format seconds as HH:MM:SS,mmm (SRT) or HH:MM:SS.mmm (VTT)."""
    total_ms = max(0, round(seconds * 1000))
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    sep = "." if vtt else ","
    return f"{h:02d}:{m:02d}:{s:02d}{sep}{ms:03d}"


def to_plain_text(segments: list[Segment]) -> str:
    return " ".join(seg.text for seg in segments)


def to_paragraphs(segments: list[Segment]) -> list[str]:
    """Reflow segments into paragraphs in a single pass.

    A paragraph ends only where the accumulated text ends a sentence, and
    then only if a pause longer than PARAGRAPH_GAP follows or at least
    SENTENCES_PER_PARAGRAPH sentence marks have accumulated.
    """
    paragraphs: list[str] = []
    current: list[str] = []
    sentence_count = 0

    for i, seg in enumerate(segments):
        text = seg.text.strip()
        current.append(text)
        sentence_count += len(_SENTENCE_MARK_RE.findall(text))

        has_gap_after = (
            i + 1 < len(segments) and segments[i + 1].start - seg.end_time > PARAGRAPH_GAP
        )
        accumulated = " ".join(current)
        if _SENTENCE_END_RE.search(accumulated.strip()) and (
            has_gap_after or sentence_count >= SENTENCES_PER_PARAGRAPH
        ):
            paragraphs.append(accumulated)
            current = []
            sentence_count = 0

    if current:
        paragraphs.append(" ".join(current))
    return paragraphs


def to_paragraph_text(segments: list[Segment]) -> str:
    return "\n\n".join(to_paragraphs(segments))


def _cues(segments: list[Segment], vtt: bool) -> str:
    return "\n".join(
        f"{i}\n{format_timestamp(seg.start, vtt)} --> {format_timestamp(seg.end_time, vtt)}\n"
        f"{seg.text}\n"
        for i, seg in enumerate(segments, 1)
    )


def to_srt(segments: list[Segment]) -> str:
    return _cues(segments, vtt=False)


def to_vtt(segments: list[Segment]) -> str:
    return "WEBVTT\n\n" + _cues(segments, vtt=True)


def render_variant(variant: TranscriptVariant, fmt: str) -> str:
    """Render one language's transcript in the requested format."""
    segments = variant.segments
    if fmt == "txt":
        return to_plain_text(segments)
    if fmt == "paragraphs":
        return to_paragraph_text(segments)
    if fmt == "srt":
        return to_srt(segments)
    if fmt == "vtt":
        return to_vtt(segments)
    if fmt == "json":
        return json.dumps(asdict(variant), indent=2, ensure_ascii=False)
    raise ValueError(f"Unknown format: {fmt!r}. Choose from {', '.join(FORMATS)}.")


def render_legacy(legacy: LegacyContent, fmt: str) -> str:
    """Render pre-rendered legacy content; missing encodings fall back to JSON."""
    if fmt in ("txt", "paragraphs") and legacy.text:
        return _NEWLINES_RE.sub(" ", legacy.text).strip()
    if fmt == "srt" and legacy.srt:
        return legacy.srt
    if fmt == "vtt" and legacy.vtt:
        return legacy.vtt
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format: {fmt!r}. Choose from {', '.join(FORMATS)}.")
    return json.dumps(asdict(legacy), indent=2, ensure_ascii=False)


def render(target: ExtractionResult | TranscriptVariant | LegacyContent, fmt: str) -> str:
    """Render a variant, legacy content, or a whole result.

    A result renders its legacy content if it has any, otherwise its
    variant picked by the same language policy the cache applies.
    """
    if isinstance(target, TranscriptVariant):
        return render_variant(target, fmt)
    if isinstance(target, LegacyContent):
        return render_legacy(target, fmt)
    if target.legacy is not None:
        return render_legacy(target.legacy, fmt)
    code = default_language(target)
    if code is None:
        return ""
    return render_variant(target.variants[code], fmt)


def format_duration(seconds: float | None) -> str | None:
    """Format seconds as M:SS or H:MM:SS."""
    if not seconds:
        return None
    total = int(seconds)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def format_view_count(count: int | None) -> str | None:
    """Compact view count, e.g. 1.7B, 1.2M, 1.1K."""
    if count is None:
        return None
    for threshold, suffix in ((1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")):
        if count >= threshold:
            return f"{count / threshold:.1f}{suffix}"
    return f"{count:,}"


def format_upload_date(value: str | None) -> str | None:
    """YYYYMMDD -> "Mar 5, 2024"."""
    if not value or len(value) != 8 or not value.isdigit():
        return None
    try:
        d = date(int(value[:4]), int(value[4:6]), int(value[6:]))
    except ValueError:
        return None
    return f"{d:%b} {d.day}, {d.year}"
