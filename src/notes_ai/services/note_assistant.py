"""services.note_assistant

Note-level AI features built on top of a text generation client:
summaries and tag suggestions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from notes_ai.core.exceptions import GeminiError, GeminiErrorType
from notes_ai.core.types import GenerationOptions

if TYPE_CHECKING:
    from notes_ai.core.abc import AbstractLLMClient

logger = logging.getLogger(__name__)

MIN_SUMMARY_CONTENT_LENGTH = 10
MAX_TAGS = 5
MAX_TAG_LENGTH = 20

SUMMARY_OPTIONS = GenerationOptions(max_tokens=300, temperature=0.3)
TAG_OPTIONS = GenerationOptions(max_tokens=100, temperature=0.4)

SUMMARY_PROMPT = (
    '다음 노트를 간단명료하게 3-5줄로 요약해주세요. '
    '핵심 내용만 포함하고 불필요한 설명은 제외하세요:\n\n{content}'
)

TAG_PROMPT = (
    '다음 노트에 적합한 태그 3-5개를 생성해주세요. 태그는 한글로 작성하고, 콤마로 구분하세요. '
    '태그만 응답하고 다른 설명은 포함하지 마세요.\n\n'
    '제목: {title}\n'
    '내용: {content}'
)

UNTITLED = '제목 없음'


class NoteAssistant:
    """Summaries and tags for a note's content."""

    def __init__(self, client: AbstractLLMClient) -> None:
        self._client = client

    async def summarize(self, content: str) -> str:
        """Return a 3-5 line summary of *content*.

        Raises
        ------
        GeminiError
            INVALID_REQUEST when *content* is missing or too short to
            summarise; any generation failure otherwise.

        """
        _require_content(content)
        if len(content) < MIN_SUMMARY_CONTENT_LENGTH:
            raise GeminiError(GeminiErrorType.INVALID_REQUEST, 'Content is too short to summarise')

        summary = await self._client.generate_text(SUMMARY_PROMPT.format(content=content), SUMMARY_OPTIONS)
        return summary.strip()

    async def generate_tags(self, content: str, title: str | None = None) -> list[str]:
        """Suggest up to five short tags for a note."""
        _require_content(content)

        prompt = TAG_PROMPT.format(title=title or UNTITLED, content=content)
        response = await self._client.generate_text(prompt, TAG_OPTIONS)
        tags = parse_tags(response)
        logger.debug('Generated %d tags', len(tags))
        return tags


def parse_tags(response: str) -> list[str]:
    """Split a comma-separated model reply into at most five short tags."""
    tags = [tag.strip() for tag in response.split(',')]
    return [tag for tag in tags if 0 < len(tag) < MAX_TAG_LENGTH][:MAX_TAGS]


def _require_content(content: object) -> None:
    if not content or not isinstance(content, str):
        raise GeminiError(GeminiErrorType.INVALID_REQUEST, 'Note content is required')
