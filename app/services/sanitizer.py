import re

UNSAFE_CHARS_RE = re.compile(r"[<>\"']")
JS_SCHEME_RE = re.compile(r"javascript:", re.IGNORECASE)
EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)

MESSAGE_MAX_LENGTH = 500


def sanitize_text(value: object, max_length: int = MESSAGE_MAX_LENGTH) -> str:
    """Очищает свободный текст перед сохранением и модерацией.

    Это не полноценный HTML-санитайзер: удаляются угловые скобки и кавычки,
    схемы javascript: и атрибуты вида on<event>=, результат обрезается до max_length.
    """
    if not isinstance(value, str):
        return ""

    text = value.strip()
    # Повторяем до стабилизации: удаление одного фрагмента может склеить другой.
    while True:
        cleaned = UNSAFE_CHARS_RE.sub("", text)
        cleaned = JS_SCHEME_RE.sub("", cleaned)
        cleaned = EVENT_HANDLER_RE.sub("", cleaned)
        if cleaned == text:
            break
        text = cleaned

    return text.strip()[:max_length]
