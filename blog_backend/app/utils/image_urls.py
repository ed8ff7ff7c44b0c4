import re
from urllib.parse import urlsplit

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp")
_URL_RE = re.compile(
    r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)$",
    re.IGNORECASE,
)


def is_valid_image_url(url: str | None) -> bool:
    if not url or not url.strip():
        return False
    if not _URL_RE.match(url):
        return False
    try:
        path = urlsplit(url).path
    except ValueError:
        return False
    return path.lower().endswith(IMAGE_EXTENSIONS)


def validate_image_urls(urls) -> tuple[bool, list[str]]:
    invalid = [url for url in (urls or []) if not is_valid_image_url(url)]
    return not invalid, invalid


def dedupe_urls(urls) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for url in urls or []:
        if url in seen:
            continue
        seen.add(url)
        result.append(url)
    return result
