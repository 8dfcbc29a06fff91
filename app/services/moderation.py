"""Модерация сообщений чата: локальный словарь и внешний LLM-классификатор.

Конвейер проверяет сообщение последовательно и останавливается на первом отказе.
Внешний классификатор вызывается только если словарный фильтр пропустил текст,
и при любой его недоступности сообщение считается допустимым.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from app.services.profanity import LexicalFilter

logger = logging.getLogger(__name__)

METHOD_LEXICAL = "lexical-filter"
METHOD_REMOTE = "remote-classifier"
METHOD_PASSED = "both-passed"

SEVERITIES = ("low", "medium", "high")

CLASSIFIER_PROMPT = (
    "You are a content moderator for a public Indonesian/English chat board. "
    "Decide whether the user message contains profanity, insults, hate speech, "
    "sexual content or harassment, including obfuscated spellings. "
    'Reply with JSON only: {"isProfane": bool, "severity": "low"|"medium"|"high", '
    '"reason": string, "detected": [string]}'
)

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


@dataclass(frozen=True)
class ClassifierVerdict:
    is_profane: bool
    severity: str = "low"
    reason: str = ""
    detected: list[str] = field(default_factory=list)
    available: bool = True


UNAVAILABLE_VERDICT = ClassifierVerdict(
    is_profane=False,
    severity="low",
    reason="classifier unavailable",
    detected=[],
    available=False,
)


@dataclass(frozen=True)
class ModerationVerdict:
    allowed: bool
    reason: str
    method: str
    severity: str
    detected: list[str] = field(default_factory=list)


class ModerationClassifier(Protocol):
    async def classify(self, text: str) -> ClassifierVerdict: ...


def parse_classifier_content(content: str) -> ClassifierVerdict:
    """Разбирает JSON-вердикт модели. Ответ без JSON считается ошибкой формата."""
    fenced = FENCED_JSON_RE.search(content)
    raw = fenced.group(1) if fenced else content[content.find("{") : content.rfind("}") + 1]
    data = json.loads(raw)
    if not isinstance(data, dict) or not isinstance(data.get("isProfane"), bool):
        raise ValueError("Classifier response has no boolean isProfane")

    severity = str(data.get("severity", "")).lower()
    if severity not in SEVERITIES:
        severity = "medium"
    detected = data.get("detected") or []
    if not isinstance(detected, list):
        detected = [detected]

    return ClassifierVerdict(
        is_profane=data["isProfane"],
        severity=severity,
        reason=str(data.get("reason") or ""),
        detected=[str(item) for item in detected],
    )


class HttpModerationClassifier:
    """Классификатор поверх OpenAI-совместимого chat completions API."""

    def __init__(self, api_url: str, api_key: str, model: str, timeout: float = 8.0) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    async def classify(self, text: str) -> ClassifierVerdict:
        # Без ключа внешняя проверка отключена.
        if not self.api_key:
            return UNAVAILABLE_VERDICT

        payload = {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": CLASSIFIER_PROMPT},
                {"role": "user", "content": text},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
                content = response.json()["choices"][0]["message"]["content"]
            return parse_classifier_content(content)
        except (httpx.HTTPError, httpx.InvalidURL, KeyError, IndexError, TypeError, ValueError) as exc:
            # json.JSONDecodeError наследуется от ValueError.
            logger.warning("Moderation classifier unavailable, allowing message: %r", exc)
            return UNAVAILABLE_VERDICT


class ModerationPipeline:
    def __init__(self, lexical_filter: LexicalFilter, classifier: ModerationClassifier) -> None:
        self.lexical_filter = lexical_filter
        self.classifier = classifier

    async def moderate(self, text: str) -> ModerationVerdict:
        # Шаг 1: дешёвая локальная проверка.
        detected = self.lexical_filter.find_terms(text)
        if detected:
            return ModerationVerdict(
                allowed=False,
                reason="Message contains blocked words",
                method=METHOD_LEXICAL,
                severity="high",
                detected=detected,
            )

        # Шаг 2: один вызов внешнего классификатора, без повторов.
        verdict = await self.classifier.classify(text)
        if verdict.is_profane:
            return ModerationVerdict(
                allowed=False,
                reason=verdict.reason or "Message flagged by moderation",
                method=METHOD_REMOTE,
                severity=verdict.severity,
                detected=list(verdict.detected),
            )

        return ModerationVerdict(
            allowed=True,
            reason="" if verdict.available else verdict.reason,
            method=METHOD_PASSED,
            severity="low",
        )
