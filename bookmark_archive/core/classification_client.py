"""Classification Client using Anthropic Claude.

Sends one batch of bookmarks to Claude and turns the reply into a
validated ClassificationResult. Every failure is raised as a
ClassificationError subclass so the pipeline can record it per batch.
The client never retries and never touches the archive.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

import anthropic
import httpx
from pydantic import ValidationError

from bookmark_archive.core.bookmark import Bookmark
from bookmark_archive.core.config import Config, get_config
from bookmark_archive.core.exceptions import (
    ConfigurationError,
    EmptyResponseError,
    InvalidResponseError,
    ServiceError,
    TransportError,
)
from bookmark_archive.core.models import ClassificationResult
from bookmark_archive.core.prompts import build_classification_prompt

logger = logging.getLogger(__name__)

# Default model for batch classification
DEFAULT_MODEL = "claude-sonnet-4-20250514"

# Replies for 20 bookmarks need room for 20 annotations plus themes
DEFAULT_MAX_TOKENS = 4000

# Post text beyond this many characters is not sent
DEFAULT_TEXT_LIMIT = 280

DEFAULT_TIMEOUT = 120.0


@runtime_checkable
class Classifier(Protocol):
    """Anything that can classify a batch of bookmarks."""

    async def classify_batch(self, batch: Sequence[Bookmark]) -> ClassificationResult: ...


def shape_bookmark(bookmark: Bookmark, text_limit: int = DEFAULT_TEXT_LIMIT) -> dict[str, Any]:
    """Reduce a bookmark to the fields the service is allowed to see."""
    return {
        "id": bookmark.id,
        "text": bookmark.text[:text_limit],
        "author": bookmark.author,
        "replies": bookmark.replies,
    }


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if present."""
    text = text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        text = text[first_newline + 1 :] if first_newline != -1 else text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_classification(response_text: str) -> ClassificationResult:
    """Parse and validate a classification reply.

    Args:
        response_text: Raw text returned by the service.

    Returns:
        Validated ClassificationResult.

    Raises:
        InvalidResponseError: If the text is not a JSON object matching
            the expected structure.
    """
    text = _strip_code_fence(response_text)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidResponseError(f"Response is not valid JSON: {e.msg}")

    if not isinstance(data, dict):
        raise InvalidResponseError(
            f"Response is not a JSON object: {type(data).__name__}"
        )

    try:
        return ClassificationResult.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise InvalidResponseError(
            f"Response does not match schema ({e.error_count()} errors, "
            f"first at '{location}': {first['msg']})"
        )


def _status_error(error: anthropic.APIStatusError) -> TransportError | ServiceError:
    """Map a non-success HTTP status to a failure kind.

    An explicit error object in the body is a service error; anything
    else (e.g. an HTML page from a proxy) is a transport error.
    """
    body = error.body
    payload = body.get("error") if isinstance(body, dict) else None
    if isinstance(payload, dict):
        error_type = payload.get("type", "error")
        message = payload.get("message", error.message)
        return ServiceError(
            f"Anthropic API error: {error.status_code} {error_type}: {message}",
            status_code=error.status_code,
        )
    return TransportError(
        f"Anthropic API returned {error.status_code}: {error.message}",
        status_code=error.status_code,
    )


class ClassificationClient:
    """Classifies bookmark batches with Claude.

    Example:
        client = ClassificationClient(api_key="sk-...")
        result = await client.classify_batch(batch)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        text_limit: int = DEFAULT_TEXT_LIMIT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize classification client.

        Args:
            api_key: Anthropic API key. If not provided, reads from config.
            model: Model to use.
            max_tokens: Maximum tokens in a reply.
            text_limit: Characters of post text sent per bookmark.
            timeout: Seconds before a request fails with TransportError.

        Raises:
            ConfigurationError: If API key is not provided and not in config.
        """
        if api_key:
            self._api_key = api_key
        else:
            config = get_config(require_api_key=True)
            self._api_key = config.anthropic_api_key

        if not self._api_key:
            raise ConfigurationError(
                "ANTHROPIC_API_KEY is required for classification client"
            )

        self._model = model
        self._max_tokens = max_tokens
        self._text_limit = text_limit
        # Retry policy belongs to the pipeline, so the SDK must not retry
        self._client = anthropic.AsyncAnthropic(
            api_key=self._api_key,
            max_retries=0,
            timeout=httpx.Timeout(timeout, connect=10.0),
        )

    @classmethod
    def from_config(cls, config: Config) -> "ClassificationClient":
        return cls(
            api_key=config.anthropic_api_key,
            model=config.model,
            max_tokens=config.max_tokens,
            text_limit=config.text_limit,
            timeout=config.request_timeout,
        )

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    def build_prompt(self, batch: Sequence[Bookmark]) -> str:
        records = [shape_bookmark(b, self._text_limit) for b in batch]
        return build_classification_prompt(records)

    async def classify_batch(self, batch: Sequence[Bookmark]) -> ClassificationResult:
        """Classify one batch of bookmarks.

        Args:
            batch: Bookmarks to submit together.

        Returns:
            Validated ClassificationResult.

        Raises:
            TransportError: Connection failure, timeout, bare HTTP error or
                any other SDK error.
            ServiceError: The service returned an error payload.
            EmptyResponseError: The reply had no text content.
            InvalidResponseError: The reply was truncated, not JSON, or
                did not match the expected structure.
        """
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[{"role": "user", "content": self.build_prompt(batch)}],
            )
        except anthropic.APITimeoutError as e:
            raise TransportError(f"Anthropic API request timed out: {e}")
        except anthropic.APIConnectionError as e:
            raise TransportError(f"Failed to connect to Anthropic API: {e}")
        except anthropic.APIStatusError as e:
            raise _status_error(e)
        except anthropic.APIError as e:
            raise TransportError(f"Anthropic API request failed: {e}")

        text = next(
            (
                block.text
                for block in response.content or []
                if getattr(block, "type", None) == "text"
            ),
            "",
        )
        if not text.strip():
            raise EmptyResponseError("Anthropic API returned no text content")

        if response.stop_reason == "max_tokens":
            raise InvalidResponseError(
                f"Response truncated at max_tokens={self._max_tokens}"
            )

        result = parse_classification(text)
        logger.debug(
            "Classified %d bookmarks: %d annotations, %d themes",
            len(batch),
            len(result.bookmarks),
            len(result.themes),
        )
        return result
