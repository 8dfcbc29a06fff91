TRANSLATIONS = {
    "en": {
        "title": "Ilan Learning",
        "home": "Home",
        "about": "About",
        "contact": "Contact",
        "articles": "Articles",
        "chat_title": "Public chat",
        "chat_placeholder": "Write a message...",
        "send": "Send",
        "error_invalid_message": "Message must not be empty",
        "error_invalid_user_id": "user_id is required",
        "error_invalid_body": "Invalid request body",
        "error_blocked": "Message contains inappropriate content",
        "error_rate_limited": "Too many messages. Try again later.",
        "error_server": "Internal server error",
    },
    "id": {
        "title": "Ilan Learning",
        "home": "Beranda",
        "about": "Tentang",
        "contact": "Kontak",
        "articles": "Artikel",
        "chat_title": "Obrolan publik",
        "chat_placeholder": "Tulis pesan...",
        "send": "Kirim",
        "error_invalid_message": "Pesan tidak boleh kosong",
        "error_invalid_user_id": "user_id wajib diisi",
        "error_invalid_body": "Permintaan tidak valid",
        "error_blocked": "Pesan mengandung konten yang tidak pantas",
        "error_rate_limited": "Terlalu banyak pesan. Tunggu sebentar.",
        "error_server": "Terjadi kesalahan server",
    },
}


def get_lang(lang_cookie: str | None) -> str:
    # Возвращаем язык интерфейса с безопасным фолбэком.
    return lang_cookie if lang_cookie in {"en", "id"} else "id"


def t(lang: str, key: str) -> str:
    # Получаем перевод по ключу.
    return TRANSLATIONS.get(lang, TRANSLATIONS["en"]).get(key, key)
