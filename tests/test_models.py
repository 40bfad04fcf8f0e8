"""Tests for core data models."""

from ytscribe.core.models import (
    PLACEHOLDER_TEXT,
    CredentialPair,
    ExtractionResult,
    LegacyContent,
    Segment,
    TranscriptVariant,
    UserProfile,
)


class TestCredentialPair:
    def test_from_values(self):
        """A complete pair is built from two tokens."""
        assert CredentialPair.from_values("a", "r") == CredentialPair("a", "r")

    def test_partial_pair_is_none(self):
        """A pair missing a token is None."""
        assert CredentialPair.from_values("a", "") is None
        assert CredentialPair.from_values(None, "r") is None
        assert CredentialPair.from_values("a", 5) is None


def test_user_profile_roundtrip():
    """UserProfile survives to_dict/from_dict."""
    user = UserProfile.from_dict({"id": 7, "email": "a@b.c", "name": "Ada"})
    assert user.id == "7"
    assert UserProfile.from_dict(user.to_dict()) == user


def test_segment_end_time():
    """Segment end defaults to start plus duration."""
    assert Segment("x", 1.0, 2.5).end_time == 3.5
    assert Segment("x", 1.0, 2.5, end=3.0).end_time == 3.0


class TestPlaceholder:
    def test_placeholder_detected(self):
        """The server placeholder text is detected."""
        variant = TranscriptVariant("en", "English", segments=[Segment(PLACEHOLDER_TEXT, 0, 1)])
        assert variant.is_placeholder

    def test_regular_text(self):
        """Regular text is not a placeholder."""
        variant = TranscriptVariant("en", "English", segments=[Segment("Hi.", 0, 1)])
        assert not variant.is_placeholder

    def test_empty_variant_is_not_placeholder(self):
        """An empty variant is not a placeholder."""
        assert not TranscriptVariant("en", "English").is_placeholder


class TestHasContent:
    def test_empty(self):
        """An empty result has no content."""
        assert not ExtractionResult(source_id=None).has_content

    def test_variant_without_segments(self):
        """A variant with no segments is not content."""
        result = ExtractionResult(source_id="x", variants={"en": TranscriptVariant("en", "en")})
        assert not result.has_content

    def test_legacy_srt_only(self):
        """A legacy SRT payload is content."""
        result = ExtractionResult(source_id="x", legacy=LegacyContent(srt="1\n..."))
        assert result.has_content
