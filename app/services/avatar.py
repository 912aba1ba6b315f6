"""Avatar URLs from the UI Avatars service."""

import secrets
from urllib.parse import parse_qs, urlencode, urlparse

UI_AVATARS_BASE_URL = "https://ui-avatars.com/api/"

PALETTE = (
    "FF6B6B",
    "4ECDC4",
    "45B7D1",
    "96CEB4",
    "FFEAA7",
    "DDA0DD",
    "98D8C8",
    "F7DC6F",
    "BB8FCE",
    "85C1E9",
    "F8C471",
    "82E0AA",
)

ROLE_COLORS = {
    "owner": "F8C471",
    "admin": "FF6B6B",
    "member": "BB8FCE",
}


def get_initials(name: str | None) -> str:
    """Two initials: first letters of the first two words, or the first two letters of a single word."""
    words = (name or "").split()
    if not words:
        return "U"
    if len(words) == 1:
        return words[0][:2].upper()
    return (words[0][0] + words[1][0]).upper()


def _build_url(label: str, size: int, background: str, color: str, fmt: str) -> str:
    params = {
        "name": label,
        "size": str(size),
        "background": background,
        "color": color,
        "format": fmt,
        "bold": "true",
        "font-size": "0.5",
    }
    return f"{UI_AVATARS_BASE_URL}?{urlencode(params)}"


def generate_user_avatar(
    name: str | None, size: int = 200, background: str | None = None, color: str = "ffffff", fmt: str = "png"
) -> str:
    """Avatar showing the user's initials on a palette colour."""
    label = get_initials(name) if name and name.strip() else "User"
    return _build_url(label, size, background or secrets.choice(PALETTE), color, fmt)


def generate_role_avatar(name: str | None, role: str, size: int = 200, color: str = "ffffff", fmt: str = "png") -> str:
    """Avatar coloured by membership role."""
    background = ROLE_COLORS.get(role.lower()) or secrets.choice(PALETTE)
    return _build_url(get_initials(name), size, background, color, fmt)


def is_ui_avatars_url(url: str | None) -> bool:
    return bool(url) and url.lower().startswith(UI_AVATARS_BASE_URL)


def extract_name(url: str) -> str | None:
    """Label encoded in a UI Avatars URL."""
    if not is_ui_avatars_url(url):
        return None
    values = parse_qs(urlparse(url).query).get("name")
    return values[0] if values else None
