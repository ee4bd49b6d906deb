# util/functions.py
from typing import Sequence


def clip_chars(text: str, max_chars: int) -> str:
    """
    Return at most the first `max_chars` characters of `text`.
    """
    if max_chars <= 0:
        return ""
    return text if len(text) <= max_chars else text[:max_chars]


def strip_code_fences(raw: str) -> str:
    """
    - Remove ```json / ``` fences the model sometimes wraps around JSON.
    - Drop prose around the outermost JSON object or array.
    """
    s = (raw or "").strip()
    if s.startswith("```"):
        s = s.strip("`").strip()
        if s.lower().startswith("json"):
            s = s[4:].strip()
    s = s.replace("```json", "").replace("```", "").strip()

    if s[:1] in ("{", "[") and s[-1:] in ("}", "]"):
        return s

    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        first = s.find(open_ch)
        last = s.rfind(close_ch)
        if first != -1 and last > first:
            return s[first : last + 1]
    return s


def bounded_used_facts(texts: Sequence[str], max_chars: int, sep: str = " | ") -> str:
    """
    Join question texts into a duplication hint no longer than `max_chars`.
    Most recent entries are kept whole; the oldest are dropped first.
    """
    kept: list[str] = []
    size = 0
    for text in reversed(texts):
        t = text.strip()
        if not t:
            continue
        extra = len(t) + (len(sep) if kept else 0)
        if size + extra > max_chars:
            break
        kept.append(t)
        size += extra
    kept.reverse()
    return sep.join(kept)
