"""Write transcripts to disk."""

from __future__ import annotations

from pathlib import Path

import pysubs2

from ytscribe.core.models import Segment

# File suffix per output format
SUFFIXES = {
    "txt": "txt",
    "paragraphs": "txt",
    "srt": "srt",
    "vtt": "vtt",
    "json": "json",
    "ass": "ass",
}


def save_transcript(content: str, path: Path) -> Path:
    """Write rendered transcript text (UTF-8), creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def save_ass(segments: list[Segment], path: Path) -> Path:
    """Save segments as an Advanced SubStation Alpha file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    subs = pysubs2.SSAFile()
    for seg in segments:
        subs.events.append(
            pysubs2.SSAEvent(
                start=pysubs2.make_time(s=seg.start),
                end=pysubs2.make_time(s=seg.end_time),
                text=seg.text,
            )
        )
    subs.save(str(path), format_="ass")
    return path


def default_output_path(source_id: str | None, language: str | None, fmt: str) -> Path:
    """<video_id>.<lang>.<suffix> in the current directory."""
    stem = source_id or "transcript"
    if language:
        stem = f"{stem}.{language}"
    return Path(f"{stem}.{SUFFIXES.get(fmt, fmt)}")
