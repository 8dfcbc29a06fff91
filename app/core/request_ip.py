from fastapi import Request


def get_client_ip(request: Request) -> str:
    # Адрес уровня соединения; X-Forwarded-For от доверенных прокси уже применил ProxyHeadersMiddleware.
    return request.client.host if request.client else "unknown"
