import logging

from fastapi import HTTPException, Request
from jose import JWTError, jwt

from app.config import settings


def _split_header_names(raw_value: str, fallback: list[str]) -> list[str]:
    names = [item.strip().lower() for item in (raw_value or "").split(",") if item.strip()]
    return names or fallback


USER_HEADER_NAMES = _split_header_names(settings.AUTH_USER_HEADERS, ["x-user-id"])
TOKEN_HEADER_NAMES = _split_header_names(
    settings.AUTH_TOKEN_HEADERS,
    ["authorization", "x-auth-token"],
)
JWT_SECRET = settings.AUTH_JWT_SECRET or "blog-dev-secret"
JWT_ALGORITHM = settings.AUTH_JWT_ALGORITHM or "HS256"
logger = logging.getLogger("blog.security")


def mask_user_id(user_id: str | None) -> str:
    value = (user_id or "").strip()
    if not value:
        return "-"
    if len(value) <= 8:
        return value
    return f"{value[:4]}...{value[-4:]}"


def _audit_auth_failure(
    request: Request | None,
    reason: str,
    *,
    declared_user_id: str | None = None,
    token_present: bool | None = None,
) -> None:
    if not request:
        logger.warning("AUTH_DENY reason=%s", reason)
        return
    path = getattr(getattr(request, "url", None), "path", "-")
    method = getattr(request, "method", "-")
    client = getattr(request, "client", None)
    ip = getattr(client, "host", "-") if client else "-"
    logger.warning(
        "AUTH_DENY reason=%s method=%s path=%s ip=%s declared=%s token_present=%s",
        reason,
        method,
        path,
        ip,
        mask_user_id(declared_user_id),
        int(bool(token_present)),
    )


def _extract_declared_user_id(request: Request) -> str | None:
    headers = getattr(request, "headers", None)
    if not headers:
        return None
    for name in USER_HEADER_NAMES:
        value = headers.get(name)
        if value and value.strip():
            return value.strip()
    return None


def _extract_auth_token(request: Request) -> str | None:
    headers = getattr(request, "headers", None)
    if not headers:
        return None
    for name in TOKEN_HEADER_NAMES:
        value = headers.get(name)
        if not value:
            continue
        raw = value.strip()
        if not raw:
            continue
        if name == "authorization":
            if raw.lower().startswith("bearer "):
                raw = raw.split(" ", 1)[1].strip()
            elif " " in raw:
                # only the Bearer scheme is accepted
                continue
        if raw:
            return raw
    return None


def create_access_token(user_id: str, **claims) -> str:
    """Sign a token for ``user_id``; used by tooling and tests, not by a login flow."""
    payload = {"sub": str(user_id), **claims}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def _decode_token_user_id(token: str, request: Request | None = None) -> str:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        _audit_auth_failure(request, "invalid_token", token_present=True)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    subject = payload.get("sub")
    if not subject:
        _audit_auth_failure(request, "token_missing_sub", token_present=True)
        raise HTTPException(status_code=401, detail="Token carries no subject")
    return str(subject)


def verify_request_user(request: Request, *, required: bool = True) -> str | None:
    token = _extract_auth_token(request)
    token_user_id = _decode_token_user_id(token, request) if token else None
    declared_user_id = _extract_declared_user_id(request)

    if token_user_id and declared_user_id and token_user_id != declared_user_id:
        _audit_auth_failure(
            request,
            "token_declared_mismatch",
            declared_user_id=declared_user_id,
            token_present=True,
        )
        raise HTTPException(status_code=403, detail="Token does not match user header")
    user_id = token_user_id or declared_user_id
    if user_id:
        return user_id
    if required:
        _audit_auth_failure(request, "missing_identity", token_present=False)
        raise HTTPException(status_code=401, detail="Missing user identity")
    return None


def current_user_id(request: Request) -> str:
    return verify_request_user(request)
