"""Tests for avatar URL helpers."""

import pytest

from app.services.avatar import (
    PALETTE,
    ROLE_COLORS,
    extract_name,
    generate_role_avatar,
    generate_user_avatar,
    get_initials,
    is_ui_avatars_url,
)


@pytest.mark.parametrize(
    "name, expected",
    [("Ada Lovelace", "AL"), ("grace brewster hopper", "GB"), ("linus", "LI"), ("", "U"), (None, "U")],
)
def test_initials(name, expected):
    assert get_initials(name) == expected


def test_user_avatar_uses_palette():
    url = generate_user_avatar("Ada Lovelace")
    assert is_ui_avatars_url(url)
    assert extract_name(url) == "AL"
    assert any(f"background={color}" in url for color in PALETTE)


def test_user_avatar_without_name():
    assert extract_name(generate_user_avatar("  ")) == "User"


def test_role_avatar_colour():
    url = generate_role_avatar("Site Admin", "Admin")
    assert f"background={ROLE_COLORS['admin']}" in url
    assert extract_name(url) == "SA"


def test_foreign_urls():
    assert not is_ui_avatars_url("https://example.com/me.png")
    assert not is_ui_avatars_url(None)
    assert extract_name("https://example.com/?name=X") is None
