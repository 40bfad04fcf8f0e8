"""Transcript extraction call."""

from __future__ import annotations

from ytscribe.api.decode import decode_extraction
from ytscribe.api.orchestrator import RequestOrchestrator, RequestSpec
from ytscribe.core.errors import EmptyResult
from ytscribe.core.events import EventCallback
from ytscribe.core.models import ExtractionResult
from ytscribe.utils.console import console

EXTRACT_PATH = "/api/v1/extract"


def build_extract_body(
    url: str,
    fmt: str = "json",
    language_preference: str | None = None,
    fetch_all_languages: bool = True,
) -> dict:
    """Request body: either every language, or one preferred language."""
    body: dict = {"url": url, "format": fmt}
    if language_preference:
        body["language_preference"] = language_preference
    else:
        body["fetch_all_languages"] = fetch_all_languages
    return body


class ExtractionClient:
    """Submit a video URL and decode the transcript result set.

    Args:
        orchestrator: Retrying request layer.
        empty_result_retries: Extra submissions made when the server answers
            with a well-formed but empty payload.
    """

    def __init__(self, orchestrator: RequestOrchestrator, empty_result_retries: int = 2):
        self.orchestrator = orchestrator
        self.empty_result_retries = empty_result_retries

    async def extract_once(
        self,
        url: str,
        fmt: str = "json",
        language_preference: str | None = None,
        fetch_all_languages: bool = True,
        on_retry: EventCallback | None = None,
    ) -> ExtractionResult:
        """One orchestrated extraction call, without the empty-result retry.

        Raises:
            EmptyResult: If the response carries no transcript content.
        """
        request = RequestSpec(
            method="POST",
            path=EXTRACT_PATH,
            json=build_extract_body(url, fmt, language_preference, fetch_all_languages),
        )
        # Authenticated when possible so results get saved to the account;
        # a missing token still sends the request.
        response = await self.orchestrator.execute(request, auth_required=True, on_retry=on_retry)
        result = decode_extraction(response.payload)
        if not result.has_content:
            raise EmptyResult(
                "No transcript data returned. The video may not have captions available.",
                status=response.status,
            )
        return result

    async def extract(
        self,
        url: str,
        fmt: str = "json",
        language_preference: str | None = None,
        fetch_all_languages: bool = True,
        on_retry: EventCallback | None = None,
    ) -> ExtractionResult:
        """Extract a transcript, resubmitting transient empty payloads.

        Each resubmission runs the full HTTP retry policy again.

        Raises:
            EmptyResult: If every submission came back empty.
            ScribeError: Any other classified request failure.
        """
        resubmissions = 0
        while True:
            try:
                return await self.extract_once(
                    url,
                    fmt,
                    language_preference=language_preference,
                    fetch_all_languages=fetch_all_languages,
                    on_retry=on_retry,
                )
            except EmptyResult:
                if resubmissions >= self.empty_result_retries:
                    raise
                resubmissions += 1
                console.print(
                    f"[dim]Empty transcript payload, resubmitting "
                    f"({resubmissions}/{self.empty_result_retries})...[/dim]"
                )
