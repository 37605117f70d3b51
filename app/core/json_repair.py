"""LLM 원문 응답에서 JSON 구조를 복구하는 정규화 파이프라인.

단계는 순서대로 시도되며 앞 단계가 실패했을 때만 다음 단계로 넘어갑니다.

1. 코드 펜스 제거
2. JSON 경계 탐지
3. 엄격 파싱
4. 문법 보정 (탭, 후행 쉼표, 누락 쉼표)
5. 잘린 출력 복구
"""

from __future__ import annotations

import json
import re
from typing import Any

from app.core.exceptions import NormalizationError
from app.core.logger import get_logger

logger = get_logger(__name__)

NO_JSON_MESSAGE = "No JSON found in response"

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_OPENING_PATTERN = re.compile(r"[\[{]")
_TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")
_MISSING_COMMA_PATTERN = re.compile(r'([}\]"\w])([ \t\r]*\n\s*)(?=[{\["])')
_CLOSERS = {"[": "]", "{": "}"}
_MAX_TRUNCATION_CANDIDATES = 20


def strip_code_fence(text: str) -> str:
    """첫 번째 ``` 코드 펜스 내부를 반환합니다. 펜스가 없으면 원문 그대로."""
    match = _FENCE_PATTERN.search(text or "")
    return match.group(1) if match else (text or "")


def slice_json_span(text: str) -> str:
    """첫 `[`/`{`부터 마지막 `]`/`}`까지 잘라냅니다."""
    opening = _OPENING_PATTERN.search(text)
    end = max(text.rfind("]"), text.rfind("}"))
    if opening is None or end == -1 or end < opening.start():
        raise NormalizationError(NO_JSON_MESSAGE)
    return text[opening.start() : end + 1]


def parse_strict(span: str) -> Any:
    """표준 JSON 파서로 파싱합니다."""
    return json.loads(span)


def normalize_tabs(span: str) -> str:
    return span.replace("\t", " ")


def remove_trailing_commas(span: str) -> str:
    """닫는 괄호 직전의 쉼표를 제거합니다."""
    return _TRAILING_COMMA_PATTERN.sub(r"\1", span)


def insert_missing_commas(span: str) -> str:
    """줄바꿈으로만 구분된 인접 값 사이에 쉼표를 넣습니다.

    `}` `]` `"` 또는 단어 문자로 끝난 줄 다음 줄이 `{` `[` `"`로 시작하면
    LLM이 쉼표를 빠뜨린 것으로 간주합니다.
    """
    return _MISSING_COMMA_PATTERN.sub(r"\1,\2", span)


def repair_syntax(span: str) -> str:
    """관찰된 LLM 문법 오류를 순서대로 보정합니다."""
    return insert_missing_commas(remove_trailing_commas(normalize_tabs(span)))


def _unclosed_brackets(text: str) -> list[str]:
    """문자열 리터럴 밖에서 아직 닫히지 않은 여는 괄호 스택을 반환합니다."""
    stack: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(char)
        elif char in "]}" and stack and _CLOSERS[stack[-1]] == char:
            stack.pop()
    return stack


def _object_boundaries(span: str) -> list[int]:
    """완결된 객체 경계(`},` / `}\\n` / 끝의 `}`) 위치를 뒤에서부터 반환합니다."""
    boundaries = []
    for index in range(len(span) - 1, -1, -1):
        if span[index] != "}":
            continue
        following = span[index + 1 : index + 2]
        if following in ("", ",", "\n", "\r"):
            boundaries.append(index)
            if len(boundaries) >= _MAX_TRUNCATION_CANDIDATES:
                break
    return boundaries


def close_truncated_candidates(span: str) -> list[str]:
    """마지막 완결 객체 경계부터 거꾸로, 자른 뒤 열린 괄호를 모두 닫은 후보 목록을 반환합니다."""
    candidates = []
    for boundary in _object_boundaries(span):
        head = span[: boundary + 1]
        stack = _unclosed_brackets(head)
        if not stack:
            continue
        candidates.append(head + "".join(_CLOSERS[opener] for opener in reversed(stack)))
    return candidates


def recover_truncation(span: str) -> Any:
    """잘린 출력을 복구해 파싱합니다. 모든 후보가 실패하면 마지막 파서 오류를 올립니다."""
    last_error: json.JSONDecodeError | None = None
    for candidate in close_truncated_candidates(span):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as exc:
            last_error = exc
    if last_error is not None:
        raise last_error
    raise NormalizationError("no complete object boundary to recover from")


def extract_json(raw_text: str) -> Any:
    """LLM 원문에서 JSON 값을 복구합니다.

    Raises:
        NormalizationError: 어떤 단계로도 유효한 JSON을 얻지 못한 경우.
    """
    span = slice_json_span(strip_code_fence(raw_text))

    try:
        return parse_strict(span)
    except json.JSONDecodeError as exc:
        logger.debug("Strict JSON parse failed, repairing: %s", exc)

    repaired = repair_syntax(span)
    try:
        return parse_strict(repaired)
    except json.JSONDecodeError as exc:
        last_message = str(exc)
        logger.debug("Repaired JSON parse failed, recovering truncation: %s", exc)

    try:
        value = recover_truncation(repaired)
    except json.JSONDecodeError as exc:
        last_message = str(exc)
    except NormalizationError:
        pass
    else:
        logger.warning("Recovered truncated JSON response (length=%d)", len(span))
        return value

    raise NormalizationError(f"Could not parse JSON from response: {last_message}")


def extract_json_as(raw_text: str, expected: type[list] | type[dict]) -> Any:
    """JSON을 복구하고 최상위 타입을 확인합니다."""
    value = extract_json(raw_text)
    if not isinstance(value, expected):
        raise NormalizationError(f"Expected a JSON {expected.__name__}, got {type(value).__name__}")
    return value
