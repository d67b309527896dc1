# tests/console/test_views.py
"""Tests for the rich renderers."""

from collections.abc import Callable
from unittest.mock import patch

import pytest
from rich.console import Console

from app.console.api import ApiError, UserPage
from app.console.queries import ListState
from app.console.views import (
    error_toast,
    image_url,
    loading_hint,
    pagination_bar,
    prompt_user_form,
    render_page,
    user_age,
    visible_pages,
)


def recording_console() -> Console:
    return Console(record=True, width=160, color_system=None)


class TestVisiblePages:
    @pytest.mark.parametrize(
        ("current", "total", "expected"),
        [
            (1, 0, []),
            (1, 3, [1, 2, 3]),
            (1, 10, [1, 2, 3, 4, 5]),
            (6, 10, [4, 5, 6, 7, 8]),
            (10, 10, [6, 7, 8, 9, 10]),
            (9, 10, [6, 7, 8, 9, 10]),
        ],
    )
    def test_window(self, current: int, total: int, expected: list[int]) -> None:
        assert visible_pages(current, total) == expected


class TestHelpers:
    def test_image_url(self) -> None:
        base = "http://127.0.0.1:5001/"
        assert image_url({"image": ""}, base) == ""
        assert image_url({"image": "/uploads/user_images/a.png"}, base) == (
            "http://127.0.0.1:5001/uploads/user_images/a.png"
        )
        remote = "https://res.cloudinary.com/demo/a.png"
        assert image_url({"image": remote}, base) == remote

    def test_user_age(self, years_ago: Callable[[int], str]) -> None:
        assert user_age(years_ago(30)) == 30
        assert user_age("not a date") is None

    def test_pagination_bar(self) -> None:
        text = pagination_bar(UserPage(users=[], total_pages=3, current_page=2, total=14, cached=True)).plain
        assert "Page 2 of 3 (14 users)" in text
        assert "⚡ cached" in text
        assert " 1 " in text and " 3 " in text


class TestRendering:
    def test_table_lists_users(self) -> None:
        console = recording_console()
        page = UserPage(
            users=[
                {
                    "id": "abc",
                    "name": "Ada Lovelace",
                    "gender": "Female",
                    "birthday": "1995-12-10",
                    "occupation": "Engineer",
                    "phone": "+1 555 123 4567",
                    "image": "/uploads/user_images/a.png",
                },
            ],
            total_pages=1,
            current_page=1,
            total=1,
        )

        render_page(console, page, "http://api.test")

        output = console.export_text()
        assert "Ada Lovelace" in output
        assert "Engineer" in output
        assert "Page 1 of 1 (1 users)" in output

    def test_cards_show_absolute_image_url(self) -> None:
        console = recording_console()
        page = UserPage(
            users=[{"id": "abc", "name": "Ada Lovelace", "image": "/uploads/user_images/a.png"}],
            total_pages=1,
            current_page=1,
            total=1,
        )

        render_page(console, page, "http://api.test", cards=True)

        assert "http://api.test/uploads/user_images/a.png" in console.export_text()

    def test_empty_page(self) -> None:
        console = recording_console()
        render_page(console, UserPage(users=[], total_pages=0, current_page=1, total=0))
        assert "No users found." in console.export_text()

    def test_loading_hint_names_the_requested_page(self) -> None:
        console = recording_console()
        previous = UserPage(users=[], total_pages=3, current_page=1, total=12)

        loading_hint(console, ListState((2, 6, "ada"), previous, is_placeholder=True))

        assert "Loading page 2 for 'ada'..." in console.export_text()

    def test_error_toast_lists_fields(self) -> None:
        console = recording_console()
        error = ApiError(400, "Validation failed", [{"field": "name", "message": "Name is required"}])

        error_toast(console, error)

        output = console.export_text()
        assert "Validation failed" in output
        assert "name: Name is required" in output


class TestPromptUserForm:
    def test_reasks_until_valid(self, years_ago: Callable[[int], str]) -> None:
        console = recording_console()
        answers = iter(["A1", "Ada Lovelace", "Female", years_ago(30), "Engineer", "123", "+1 555 123 4567"])

        with patch("app.console.views.Prompt.ask", side_effect=lambda *a, **kw: next(answers)):
            values = prompt_user_form(console)

        assert values == {
            "name": "Ada Lovelace",
            "gender": "Female",
            "birthday": years_ago(30),
            "occupation": "Engineer",
            "phone": "+1 555 123 4567",
        }
        output = console.export_text()
        assert "Name can only contain letters and spaces" in output
        assert "Phone number must be between 10 and 15 characters" in output

    def test_edit_returns_changed_fields_only(self, years_ago: Callable[[int], str]) -> None:
        current = {
            "name": "Ada Lovelace",
            "gender": "Female",
            "birthday": years_ago(30),
            "occupation": "Engineer",
            "phone": "+1 555 123 4567",
        }

        def keep_default(label: str, **kwargs: object) -> object:
            return "Teacher" if label == "Occupation" else kwargs["default"]

        with patch("app.console.views.Prompt.ask", side_effect=keep_default):
            values = prompt_user_form(recording_console(), current)

        assert values == {"occupation": "Teacher"}
