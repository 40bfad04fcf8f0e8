"""Decode extraction responses into the canonical ExtractionResult.

The service answers in one of two shapes:

- segmented: ``{video_id, transcripts: {<code>: {segments, name,
  is_generated}}, available_languages, default_language, ...metadata}``
- legacy: pre-rendered ``transcript``/``full_text``/``srt_content``/
  ``vtt_content`` strings (or a bare string body)

Everything downstream works on ExtractionResult only.
"""

from __future__ import annotations

from ytscribe.core.models import (
    ExtractionResult,
    LanguageOption,
    LegacyContent,
    Segment,
    TranscriptVariant,
    VideoMetadata,
)

# Code given to a top-level segment list that names no language
UNDETERMINED_LANGUAGE = "und"


def decode_extraction(payload: object) -> ExtractionResult:
    """Decode a raw JSON payload. Never raises on unexpected shapes.

    A payload without usable content decodes to a result whose
    ``has_content`` is False; the caller decides what that means.
    """
    if isinstance(payload, str):
        return ExtractionResult(source_id=None, legacy=LegacyContent(text=payload))
    if not isinstance(payload, dict):
        return ExtractionResult(source_id=None)

    result = ExtractionResult(
        source_id=payload.get("video_id"),
        metadata=_decode_metadata(payload),
        transcript_id=_str_or_none(payload.get("transcript_id")),
    )
    if payload.get("transcript_id"):
        result.saved = True
    if payload.get("saved") is not None:
        result.saved = bool(payload.get("saved"))

    transcripts = payload.get("transcripts")
    if isinstance(transcripts, dict) and transcripts:
        for code, data in transcripts.items():
            if isinstance(data, dict):
                result.variants[code] = _decode_variant(code, data)
    elif isinstance(payload.get("segments"), list):
        code = payload.get("language") or UNDETERMINED_LANGUAGE
        result.variants[code] = _decode_variant(code, payload)
    else:
        legacy = _decode_legacy(payload)
        if legacy is not None:
            result.legacy = legacy

    default = payload.get("default_language")
    result.default_language = default if isinstance(default, str) and default else None
    result.available_languages = _decode_languages(payload.get("available_languages"), result)
    return result


def _decode_variant(code: str, data: dict) -> TranscriptVariant:
    segments = [
        _decode_segment(seg) for seg in data.get("segments") or [] if isinstance(seg, dict)
    ]
    # Keep start times non-decreasing; sorted() is stable for ties
    if any(b.start < a.start for a, b in zip(segments, segments[1:])):
        segments = sorted(segments, key=lambda s: s.start)
    return TranscriptVariant(
        language_code=code,
        display_name=data.get("name") or code,
        is_generated=bool(data.get("is_generated", False)),
        segments=segments,
    )


def _decode_segment(seg: dict) -> Segment:
    end = seg.get("end")
    return Segment(
        text=str(seg.get("text", "")),
        start=_float(seg.get("start")),
        duration=_float(seg.get("duration")),
        end=_float(end) if end is not None else None,
    )


def _decode_legacy(payload: dict) -> LegacyContent | None:
    text = payload.get("full_text") or payload.get("txt_content") or payload.get("transcript")
    srt = payload.get("srt_content")
    vtt = payload.get("vtt_content")
    if not (text or srt or vtt):
        return None
    return LegacyContent(
        text=text if isinstance(text, str) else "",
        srt=srt if isinstance(srt, str) else None,
        vtt=vtt if isinstance(vtt, str) else None,
    )


def _decode_languages(raw: object, result: ExtractionResult) -> list[LanguageOption]:
    """Deduplicate server-listed languages by code, or derive them from variants."""
    options: list[LanguageOption] = []
    if isinstance(raw, list) and raw:
        seen: set[str] = set()
        for entry in raw:
            if not isinstance(entry, dict) or not entry.get("code"):
                continue
            code = entry["code"]
            if code in seen:
                continue
            seen.add(code)
            options.append(
                LanguageOption(
                    code=code,
                    name=entry.get("name") or code,
                    is_generated=bool(entry.get("is_generated", False)),
                )
            )
        return options

    return [
        LanguageOption(code=v.language_code, name=v.display_name, is_generated=v.is_generated)
        for v in result.variants.values()
    ]


def _decode_metadata(payload: dict) -> VideoMetadata:
    view_count = payload.get("view_count")
    return VideoMetadata(
        title=payload.get("video_title"),
        channel=payload.get("channel_name"),
        channel_id=payload.get("channel_id"),
        description=payload.get("description"),
        duration_seconds=_float(payload.get("duration_seconds"), None),
        view_count=int(view_count) if isinstance(view_count, (int, float)) else None,
        upload_date=payload.get("upload_date"),
        is_short=payload.get("is_short"),
        is_live=payload.get("is_live"),
        thumbnail_url=payload.get("thumbnail_url"),
    )


def _float(value: object, default: float | None = 0.0) -> float | None:
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _str_or_none(value: object) -> str | None:
    return str(value) if value not in (None, "") else None
