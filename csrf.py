import time

from itsdangerous import BadSignature, URLSafeTimedSerializer

from config import get_settings


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.csrf_secret, salt="zen-csrf-token")


def generate_csrf_token(max_age_hours: int = 2) -> str:
    timestamp = int(time.time())
    token_data = {"ts": timestamp, "exp": timestamp + (max_age_hours * 3600)}
    return _serializer().dumps(token_data)


def validate_csrf_token(token: str, max_age_hours: int = 2) -> bool:
    if not token:
        return False
    try:
        data = _serializer().loads(token, max_age=max_age_hours * 3600)
    except BadSignature:
        return False
    return int(time.time()) <= int(data.get("exp", 0))
