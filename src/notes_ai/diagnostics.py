"""Self-test suite for a configured generation client.

Run against the real provider (needs ``GEMINI_API_KEY``)::

    python -m notes_ai.diagnostics
    python -m notes_ai.diagnostics --provider mock --concurrency 5

Each check returns a pydantic result model instead of raising, so the suite
can always report every check.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from typing import TYPE_CHECKING

from pydantic import BaseModel

from notes_ai.core.exceptions import GeminiError, GeminiErrorType, NotesAIError
from notes_ai.core.types import GenerationOptions
from notes_ai.logging_setup import configure_logging
from notes_ai.registry.client_factory import DEFAULT_PROVIDER, create_client

if TYPE_CHECKING:
    from collections.abc import Sequence

    from notes_ai.core.abc import AbstractLLMClient

logger = logging.getLogger(__name__)

BASIC_PROMPT = '안녕하세요! 간단한 인사말을 한국어로 답변해주세요.'
LONG_PROMPT = '이것은 토큰 제한을 테스트하기 위한 매우 긴 텍스트입니다. ' * 1000


class CheckResult(BaseModel):
    success: bool
    duration_ms: int = 0
    error: str | None = None


class HealthCheckResult(CheckResult):
    healthy: bool | None = None


class GenerationCheckResult(CheckResult):
    result: str | None = None


class TokenLimitCheckResult(CheckResult):
    token_count: int | None = None


class ConcurrentCheckResult(CheckResult):
    results: list[CheckResult] = []
    average_duration_ms: float = 0.0


class DiagnosticsReport(BaseModel):
    overall: bool
    health_check: HealthCheckResult
    basic_generation: GenerationCheckResult
    token_limit: TokenLimitCheckResult


def _ms_since(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _describe(error: Exception) -> str:
    return error.user_message() if isinstance(error, GeminiError) else str(error)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


async def check_health(client: AbstractLLMClient) -> HealthCheckResult:
    started = time.perf_counter()
    healthy = await client.health_check()
    return HealthCheckResult(success=True, healthy=healthy, duration_ms=_ms_since(started))


async def check_basic_generation(client: AbstractLLMClient) -> GenerationCheckResult:
    started = time.perf_counter()
    try:
        text = await client.generate_text(BASIC_PROMPT, GenerationOptions(max_tokens=100, temperature=0.7))
    except NotesAIError as exc:
        return GenerationCheckResult(success=False, error=_describe(exc), duration_ms=_ms_since(started))
    return GenerationCheckResult(success=True, result=text, duration_ms=_ms_since(started))


async def check_token_limit(client: AbstractLLMClient) -> TokenLimitCheckResult:
    """An oversized prompt must be rejected with QUOTA_EXCEEDED before any call."""
    started = time.perf_counter()
    token_count = client.estimate_tokens(LONG_PROMPT)
    try:
        await client.generate_text(LONG_PROMPT)
    except GeminiError as exc:
        if exc.error_type is GeminiErrorType.QUOTA_EXCEEDED:
            return TokenLimitCheckResult(success=True, token_count=token_count, duration_ms=_ms_since(started))
        return TokenLimitCheckResult(
            success=False,
            token_count=token_count,
            error=f'Unexpected error type {exc.error_type}: {exc}',
            duration_ms=_ms_since(started),
        )
    return TokenLimitCheckResult(
        success=False,
        token_count=token_count,
        error='Token limit was not enforced',
        duration_ms=_ms_since(started),
    )


async def check_concurrent_requests(client: AbstractLLMClient, request_count: int = 3) -> ConcurrentCheckResult:
    started = time.perf_counter()

    async def _one(index: int) -> CheckResult:
        request_started = time.perf_counter()
        try:
            await client.generate_text(
                f'테스트 요청 {index + 1}: 간단한 응답을 해주세요.',
                GenerationOptions(max_tokens=50),
            )
        except NotesAIError as exc:
            return CheckResult(success=False, error=_describe(exc), duration_ms=_ms_since(request_started))
        return CheckResult(success=True, duration_ms=_ms_since(request_started))

    results = await asyncio.gather(*(_one(i) for i in range(request_count)))
    succeeded = [r.duration_ms for r in results if r.success]
    return ConcurrentCheckResult(
        success=all(r.success for r in results),
        results=list(results),
        duration_ms=_ms_since(started),
        average_duration_ms=sum(succeeded) / len(succeeded) if succeeded else 0.0,
    )


async def run_all_checks(client: AbstractLLMClient) -> DiagnosticsReport:
    health = await check_health(client)
    basic = await check_basic_generation(client)
    token_limit = await check_token_limit(client)
    overall = health.success and basic.success and token_limit.success
    logger.info(
        'Diagnostics finished: overall=%s health=%s basic=%s token_limit=%s',
        overall,
        health.success,
        basic.success,
        token_limit.success,
    )
    return DiagnosticsReport(
        overall=overall,
        health_check=health,
        basic_generation=basic,
        token_limit=token_limit,
    )


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='python -m notes_ai.diagnostics', description=__doc__.splitlines()[0])
    parser.add_argument('--provider', default=DEFAULT_PROVIDER, help='registered provider slug (default: gemini)')
    parser.add_argument(
        '--concurrency',
        type=int,
        default=0,
        metavar='N',
        help='also fire N simultaneous requests',
    )
    parser.add_argument('--json-logs', action='store_true', help='emit logs as JSON lines')
    return parser.parse_args(argv)


async def _main(args: argparse.Namespace) -> int:
    client = create_client(args.provider)
    configure_logging(debug=client.get_config().debug, json_output=args.json_logs)

    report = await run_all_checks(client)
    print(report.model_dump_json(indent=2))
    ok = report.overall

    if args.concurrency > 0:
        concurrent = await check_concurrent_requests(client, args.concurrency)
        print(concurrent.model_dump_json(indent=2))
        ok = ok and concurrent.success

    return 0 if ok else 1


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        return asyncio.run(_main(args))
    except NotesAIError as exc:
        print(f'error: {exc}', file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
