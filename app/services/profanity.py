"""Локальный словарный фильтр ненормативной лексики (индонезийский и английский)."""

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

# Базовый словарь, включая leetspeak и типичные маскировки.
DEFAULT_BLOCKED_TERMS: frozenset[str] = frozenset(
    {
        # Индонезийский.
        "anjing",
        "anjg",
        "anjir",
        "4njing",
        "anj1ng",
        "4nj1ng",
        "babi",
        "b4bi",
        "bangsat",
        "b4ngsat",
        "bajingan",
        "b4jingan",
        "kontol",
        "k0ntol",
        "kont0l",
        "k0nt0l",
        "memek",
        "m3m3k",
        "ngentot",
        "ng3ntot",
        "ngent0t",
        "jancok",
        "jancuk",
        "j4ncok",
        "goblok",
        "g0blok",
        "gobl0k",
        "tolol",
        "t0l0l",
        "kampret",
        "keparat",
        "bego",
        "idiot",
        "pepek",
        "pelacur",
        "lonte",
        "l0nte",
        # Английский.
        "fuck",
        "fck",
        "fuk",
        "f*ck",
        "phuck",
        "shit",
        "sh1t",
        "$hit",
        "bitch",
        "b1tch",
        "biatch",
        "bastard",
        "asshole",
        "a$$hole",
        "cunt",
        "dick",
        "d1ck",
        "pussy",
        "motherfucker",
        "nigger",
        "nigga",
        "faggot",
        "retard",
        "whore",
        "slut",
    }
)


def load_blocked_terms(extra_file: str | Path | None = None) -> frozenset[str]:
    # Собираем словарь один раз при старте: базовые слова + необязательный файл.
    terms = set(DEFAULT_BLOCKED_TERMS)
    if extra_file:
        path = Path(extra_file)
        for line in path.read_text(encoding="utf-8").splitlines():
            term = line.strip().lower()
            if term and not term.startswith("#"):
                terms.add(term)
        logger.info("Loaded %s blocked terms (%s from %s)", len(terms), len(terms) - len(DEFAULT_BLOCKED_TERMS), path)
    return frozenset(terms)


class LexicalFilter:
    """Быстрая проверка текста по неизменяемому словарю запрещённых слов.

    Слово считается найденным, если встречается целиком или как подстрока
    внутри другого слова. Совпадение целым словом частный случай подстроки,
    поэтому достаточно одного регулярного выражения с альтернативами.
    """

    def __init__(self, terms: frozenset[str]) -> None:
        self.terms = frozenset(term.lower() for term in terms if term)
        # Длинные варианты первыми, чтобы find_terms возвращал полное слово.
        alternatives = sorted(self.terms, key=len, reverse=True)
        self._pattern = re.compile("|".join(re.escape(term) for term in alternatives)) if alternatives else None

    def find_terms(self, text: str) -> list[str]:
        if not self._pattern or not text:
            return []
        found: list[str] = []
        for match in self._pattern.finditer(text.lower()):
            term = match.group(0)
            if term not in found:
                found.append(term)
        return found

    def contains_profanity(self, text: str) -> bool:
        if not self._pattern or not text:
            return False
        return self._pattern.search(text.lower()) is not None
