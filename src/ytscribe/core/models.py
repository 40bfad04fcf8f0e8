"""Shared data models for ytscribe."""

from __future__ import annotations

from dataclasses import dataclass, field

PLACEHOLDER_TEXT = "This video is restricted and does not allow transcript extraction"


@dataclass(frozen=True)
class CredentialPair:
    """Access/refresh token pair. Both tokens are always non-empty."""

    access_token: str
    refresh_token: str

    @classmethod
    def from_values(cls, access: object, refresh: object) -> CredentialPair | None:
        """Build a pair, or None if either half is missing (a partial pair is absent)."""
        if isinstance(access, str) and access and isinstance(refresh, str) and refresh:
            return cls(access_token=access, refresh_token=refresh)
        return None


@dataclass
class UserProfile:
    """Account details returned by the auth service."""

    id: str
    email: str
    name: str | None = None
    created_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        return cls(
            id=str(data.get("id", "")),
            email=data.get("email", ""),
            name=data.get("name"),
            created_at=data.get("created_at"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "created_at": self.created_at,
        }


@dataclass
class Segment:
    """One timed unit of transcript text."""

    text: str
    start: float  # seconds
    duration: float  # seconds
    end: float | None = None

    @property
    def end_time(self) -> float:
        """Explicit end if the server sent one, otherwise start + duration."""
        return self.end if self.end is not None else self.start + self.duration


@dataclass
class TranscriptVariant:
    """One language's transcript within an extraction result."""

    language_code: str
    display_name: str
    is_generated: bool = False
    segments: list[Segment] = field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        """True when the server returned its "restricted video" stand-in text."""
        if not self.segments:
            return False
        return " ".join(s.text for s in self.segments).strip() == PLACEHOLDER_TEXT


@dataclass
class LanguageOption:
    """An entry in the list of languages offered for a video."""

    code: str
    name: str
    is_generated: bool = False


@dataclass
class VideoMetadata:
    title: str | None = None
    channel: str | None = None
    channel_id: str | None = None
    description: str | None = None
    duration_seconds: float | None = None
    view_count: int | None = None
    upload_date: str | None = None  # YYYYMMDD
    is_short: bool | None = None
    is_live: bool | None = None
    thumbnail_url: str | None = None


@dataclass
class LegacyContent:
    """Pre-rendered strings from servers that predate segmented responses."""

    text: str = ""
    srt: str | None = None
    vtt: str | None = None


@dataclass
class ExtractionResult:
    """Output of one successful extraction call.

    Either ``variants`` holds per-language transcripts (segmented shape) or
    ``legacy`` holds pre-rendered strings (legacy shape).
    """

    source_id: str | None
    variants: dict[str, TranscriptVariant] = field(default_factory=dict)
    default_language: str | None = None
    metadata: VideoMetadata = field(default_factory=VideoMetadata)
    available_languages: list[LanguageOption] = field(default_factory=list)
    transcript_id: str | None = None
    saved: bool = False
    legacy: LegacyContent | None = None

    @property
    def has_content(self) -> bool:
        """Whether the result carries any usable transcript text."""
        if self.legacy is not None:
            return bool(self.legacy.text or self.legacy.srt or self.legacy.vtt)
        return any(v.segments for v in self.variants.values())
