# app/services/recovery.py
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from pydantic import ValidationError

from app.adapters.llm.constants import (
    JUDGE_SYSTEM_PROMPT,
    JUDGMENT_SHAPE_HINT,
    REPAIR_SYSTEM_PROMPT,
    REPAIR_USER_TEMPLATE,
)
from app.domain.errors import (
    ModelParseFailure,
    ModelProviderFailure,
    SchemaValidationFailure,
)
from app.domain.judgment import RawJudgment
from app.domain.models import ParseMetrics
from app.domain.ports.llm import JudgeLLMPort
from app.utils.text import strip_code_fences, trunc

logger = logging.getLogger(__name__)

_CONTROL_ESCAPES = {'\n': '\\n', '\r': '\\r', '\t': '\\t', '\b': '\\b', '\f': '\\f'}


@dataclass(frozen=True)
class ParsedReply:
    data: Optional[Dict[str, Any]]
    parse_fail_count: int
    repair_used: bool


@dataclass(frozen=True)
class Recovered:
    judgment: RawJudgment
    metrics: ParseMetrics


# ----------------------------- local passes -----------------------------
def _slice_object(text: str) -> str:
    start, end = text.find('{'), text.rfind('}')
    if start == -1 or end <= start:
        return text
    return text[start : end + 1]


def _escape_control_chars(text: str) -> str:
    """Escape raw control characters that appear inside JSON string literals."""
    out = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            elif ord(ch) < 0x20:
                ch = _CONTROL_ESCAPES.get(ch, '\\u%04x' % ord(ch))
        elif ch == '"':
            in_string = True
        out.append(ch)
    return ''.join(out)


# each pass works on the previous pass's output
_PASSES: Tuple[Tuple[str, Callable[[str], str]], ...] = (
    ('raw', lambda t: t),
    ('strip_fences', strip_code_fences),
    ('slice_object', _slice_object),
    ('escape_control', _escape_control_chars),
)


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def extract_json_object(text: str) -> ParsedReply:
    """
    Pull one JSON object out of untrusted model text.

    Passes run in order (raw, strip fences, slice first '{' to last '}',
    escape control characters); every failed pass counts one parse failure.
    repair_used is True when anything past the raw parse produced the object.
    """
    candidate = text or ''
    fails = 0
    for i, (name, fn) in enumerate(_PASSES):
        candidate = fn(candidate)
        data = _loads_object(candidate)
        if data is not None:
            if i:
                logger.info('[recover.local_ok] pass=%s fails=%d', name, fails)
            return ParsedReply(data=data, parse_fail_count=fails, repair_used=i > 0)
        fails += 1
    return ParsedReply(data=None, parse_fail_count=fails, repair_used=False)


# ----------------------------- recoverer -----------------------------
class ModelResponseRecoverer:
    """
    Turns one prompt into a validated RawJudgment, or raises a JudgmentFailure.
    Never invents a score: every failure carries the verbatim first response.
    """

    def __init__(
        self,
        llm: JudgeLLMPort,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        max_retries: int = 2,
        backoff_seconds: float = 1.0,
        log_preview: int = 500,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_retries = max(0, int(max_retries))
        self.backoff_seconds = backoff_seconds
        self.log_preview = log_preview
        self._sleep = sleep

    async def _call(self, prompt: str, *, system: str, temperature: Optional[float]) -> str:
        for attempt in range(self.max_retries + 1):
            try:
                return await self.llm.complete(
                    prompt,
                    system=system,
                    temperature=temperature,
                    max_tokens=self.max_tokens,
                )
            except ModelProviderFailure as e:
                if not e.retryable or attempt == self.max_retries:
                    raise
                delay = self.backoff_seconds * (2**attempt)
                logger.warning(
                    '[recover.retry] attempt=%d delay=%.1fs err=%s', attempt + 1, delay, e
                )
                await self._sleep(delay)
        raise AssertionError('unreachable')

    @staticmethod
    def _validate(data: Dict[str, Any]) -> RawJudgment:
        return RawJudgment.model_validate(data)

    async def invoke(self, prompt: str) -> Recovered:
        raw = await self._call(prompt, system=JUDGE_SYSTEM_PROMPT, temperature=self.temperature)

        first = extract_json_object(raw)
        fails = first.parse_fail_count
        saw_object = first.data is not None

        if first.data is not None:
            try:
                judgment = self._validate(first.data)
                return Recovered(
                    judgment=judgment,
                    metrics=ParseMetrics(parse_fail_count=fails, repair_used=first.repair_used),
                )
            except ValidationError as e:
                fails += 1
                logger.warning('[recover.schema_fail] errors=%d', e.error_count())

        logger.warning(
            '[recover.parse_fail] fails=%d raw_preview=%r',
            fails,
            trunc(raw, self.log_preview),
        )

        # one format-only re-prompt
        repair_prompt = REPAIR_USER_TEMPLATE.replace('{SHAPE}', JUDGMENT_SHAPE_HINT).replace(
            '{RAW}', raw
        )
        try:
            repaired_raw = await self._call(
                repair_prompt, system=REPAIR_SYSTEM_PROMPT, temperature=0.0
            )
        except ModelProviderFailure as e:
            logger.warning('[recover.repair_unavailable] err=%s', e)
            repaired_raw = ''

        if repaired_raw:
            second = extract_json_object(repaired_raw)
            fails += second.parse_fail_count
            if second.data is not None:
                saw_object = True
                try:
                    judgment = self._validate(second.data)
                    logger.info('[recover.repair_ok] fails=%d', fails)
                    return Recovered(
                        judgment=judgment,
                        metrics=ParseMetrics(parse_fail_count=fails, repair_used=True),
                    )
                except ValidationError:
                    fails += 1
        else:
            fails += 1

        logger.error(
            '[recover.failed] fails=%d schema=%s raw_preview=%r',
            fails,
            saw_object,
            trunc(raw, self.log_preview),
        )
        exc_cls = SchemaValidationFailure if saw_object else ModelParseFailure
        raise exc_cls(
            'Judging model output could not be turned into a valid judgment',
            raw_output=raw,
            parse_fail_count=fails,
            repair_attempted=True,
        )
