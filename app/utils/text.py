# app/utils/text.py
import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Tuple

# compiled once
WS_RX = re.compile(r'\s+')
FENCE_OPEN_RX = re.compile(r'^\s*```[a-zA-Z0-9_-]*\s*')
FENCE_CLOSE_RX = re.compile(r'\s*```\s*$')

FILLER_WORDS = (
    'um',
    'uh',
    'like',
    'you know',
    'so',
    'basically',
    'actually',
    'literally',
    'kind of',
    'sort of',
)
_FILLER_RX = {
    f: re.compile(r'\b' + r'\s+'.join(map(re.escape, f.split())) + r'\b')
    for f in FILLER_WORDS
}


def trunc(s: str, n: int = 120) -> str:
    return s if len(s) <= n else s[:n] + '…'


def tokens(text: str) -> List[str]:
    return [w for w in WS_RX.split((text or '').strip()) if w]


def word_count(text: str) -> int:
    return len(tokens(text))


def round1(x: float) -> float:
    # half-up on the decimal value, so 7.0 * 0.35 (2.4499999999999997) -> 2.5
    if not math.isfinite(x):
        return float(x)
    d = Decimal(repr(round(float(x), 9)))
    return float(d.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def strip_code_fences(text: str) -> str:
    return FENCE_CLOSE_RX.sub('', FENCE_OPEN_RX.sub('', text)).strip()


def count_fillers(text: str) -> Tuple[int, Dict[str, int]]:
    lower = (text or '').lower()
    breakdown: Dict[str, int] = {}
    for f, rx in _FILLER_RX.items():
        n = len(rx.findall(lower))
        if n:
            breakdown[f] = n
    return sum(breakdown.values()), breakdown


def format_duration(seconds: float) -> str:
    s = max(0, int(round(seconds or 0)))
    return f'{s // 60}:{s % 60:02d}'
