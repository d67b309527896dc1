# tests/console/test_cli.py
"""Tests for the console entry point."""

from asyncio import sleep
from collections.abc import Callable, Generator
from pathlib import Path
from time import sleep as blocking_sleep
from unittest.mock import patch

import pytest
from httpx import AsyncClient, MockTransport, Request, Response
from rich.console import Console

from app.console.api import ApiError, UserApiClient
from app.console.cli import build_parser, form_from_args, host_root, image_from_args, run_command

USER = {
    "id": "abc",
    "name": "Ada Lovelace",
    "gender": "Female",
    "birthday": "1995-12-10",
    "occupation": "Engineer",
    "phone": "+1 555 123 4567",
    "image": "",
}


@pytest.fixture
def output() -> Generator[Console]:
    """Swap the module console for a recording one."""
    console = Console(record=True, width=160, color_system=None)
    with patch("app.console.cli.console", console):
        yield console


def api_with(handler: Callable[[Request], Response]) -> UserApiClient:
    return UserApiClient(client=AsyncClient(base_url="http://test/api", transport=MockTransport(handler)))


class TestParsing:
    def test_host_root(self) -> None:
        assert host_root("http://127.0.0.1:5001/api") == "http://127.0.0.1:5001"
        assert host_root("http://127.0.0.1:5001/api/") == "http://127.0.0.1:5001"

    def test_form_fields_from_options(self) -> None:
        args = build_parser().parse_args(["update", "abc", "--occupation", "Teacher"])
        assert form_from_args(args) == {"occupation": "Teacher"}

    def test_list_defaults(self) -> None:
        args = build_parser().parse_args(["list"])
        assert (args.page, args.limit, args.search, args.cards) == (1, 6, "", False)

    def test_browse_options(self) -> None:
        args = build_parser().parse_args(["browse", "--search", "eng", "--cards"])
        assert (args.command, args.page, args.limit, args.search, args.cards) == ("browse", 1, 6, "eng", True)

    def test_missing_image_file(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(["create", "--image", str(tmp_path / "nope.png")])
        with pytest.raises(ApiError, match="Image not found"):
            image_from_args(args)


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_list(self, output: Console) -> None:
        def handler(request: Request) -> Response:
            return Response(200, json={"users": [USER], "totalPages": 1, "currentPage": 1, "total": 1})

        args = build_parser().parse_args(["--base-url", "http://test/api", "list"])

        assert await run_command(args, api_with(handler)) == 0
        text = output.export_text()
        assert "Ada Lovelace" in text
        assert "Page 1 of 1 (1 users)" in text

    @pytest.mark.asyncio
    async def test_list_failure_shows_hint(self, output: Console) -> None:
        def handler(request: Request) -> Response:
            return Response(500, json={"success": False, "message": "Database Error"})

        args = build_parser().parse_args(["list"])

        assert await run_command(args, api_with(handler)) == 1
        assert "Could not load users: Database Error" in output.export_text()

    @pytest.mark.asyncio
    async def test_create_from_options(self, output: Console) -> None:
        seen: list[Request] = []

        def handler(request: Request) -> Response:
            seen.append(request)
            return Response(201, json={"success": True, "user": USER})

        args = build_parser().parse_args(
            [
                "create",
                "--name",
                "Ada Lovelace",
                "--gender",
                "Female",
                "--birthday",
                "1995-12-10",
                "--occupation",
                "Engineer",
                "--phone",
                "+1 555 123 4567",
            ],
        )

        assert await run_command(args, api_with(handler)) == 0
        assert seen[0].method == "POST"
        assert "User created successfully: Ada Lovelace (abc)" in output.export_text()

    @pytest.mark.asyncio
    async def test_validation_error_is_shown(self, output: Console) -> None:
        def handler(request: Request) -> Response:
            return Response(
                409,
                json={"success": False, "message": "Phone number already exists"},
            )

        args = build_parser().parse_args(["update", "abc", "--phone", "+1 555 123 4567"])

        assert await run_command(args, api_with(handler)) == 1
        assert "Phone number already exists" in output.export_text()

    @pytest.mark.asyncio
    async def test_delete_with_yes(self, output: Console) -> None:
        methods: list[str] = []

        def handler(request: Request) -> Response:
            methods.append(request.method)
            return Response(200, json={"success": True, "message": "User deleted successfully"})

        args = build_parser().parse_args(["delete", "abc", "--yes"])

        assert await run_command(args, api_with(handler)) == 0
        assert methods == ["DELETE"]
        assert "User deleted successfully" in output.export_text()

    @pytest.mark.asyncio
    async def test_delete_cancelled(self, output: Console) -> None:
        def handler(request: Request) -> Response:
            pytest.fail("No request expected")

        args = build_parser().parse_args(["delete", "abc"])

        with patch("app.console.cli.Confirm.ask", return_value=False):
            assert await run_command(args, api_with(handler)) == 0
        assert "Cancelled." in output.export_text()


def page_of(page: int, total_pages: int = 3) -> Response:
    user = {**USER, "id": f"u{page}", "name": f"User Number {page}"}
    return Response(
        200,
        json={"users": [user], "totalPages": total_pages, "currentPage": page, "total": total_pages},
    )


def answering(*answers: str, pause: float = 0.05) -> Callable[..., str]:
    """Prompt stand-in that gives the loop a moment between keys."""
    queue = iter(answers)

    def ask(*args: object, **kwargs: object) -> str:
        blocking_sleep(pause)
        return next(queue)

    return ask


class TestBrowse:
    @pytest.mark.asyncio
    async def test_pages_forward_and_back(self, output: Console) -> None:
        pages: list[int] = []

        def handler(request: Request) -> Response:
            pages.append(int(request.url.params["page"]))
            return page_of(pages[-1])

        args = build_parser().parse_args(["browse"])

        with patch("app.console.cli.Prompt.ask", side_effect=answering("n", "n", "n", "p", "x", "q")):
            assert await run_command(args, api_with(handler)) == 0

        # The last "n" stays on page 3 and "p" returns to page 2 from the query cache
        assert pages == [1, 2, 3]
        text = output.export_text()
        assert "Page 3 of 3 (3 users)" in text
        assert "Unknown key: x" in text

    @pytest.mark.asyncio
    async def test_search_typing_is_debounced(self, output: Console) -> None:
        searches: list[str] = []

        def handler(request: Request) -> Response:
            searches.append(request.url.params.get("search", ""))
            return page_of(1, total_pages=1)

        answers = iter(["/a", "/ad", "/ada"])

        def ask(*args: object, **kwargs: object) -> str:
            answer = next(answers, None)
            if answer is None:
                blocking_sleep(0.8)
                return "q"
            return answer

        args = build_parser().parse_args(["browse"])

        with patch("app.console.cli.Prompt.ask", side_effect=ask):
            assert await run_command(args, api_with(handler)) == 0

        assert searches == ["", "ada"]

    @pytest.mark.asyncio
    async def test_slow_page_does_not_replace_newer_one(self, output: Console) -> None:
        async def handler(request: Request) -> Response:
            page = int(request.url.params["page"])
            if page == 2:
                await sleep(0.3)
            return page_of(page)

        args = build_parser().parse_args(["browse"])

        with patch("app.console.cli.Prompt.ask", side_effect=answering("n", "n", "q")):
            assert await run_command(args, api_with(handler)) == 0

        text = output.export_text()
        assert "Loading page 2..." in text
        assert "User Number 3" in text
        assert "Page 3 of 3" in text
        assert "Page 2 of 3" not in text
        assert "User Number 2" not in text

    @pytest.mark.asyncio
    async def test_load_failure_keeps_browsing(self, output: Console) -> None:
        def handler(request: Request) -> Response:
            return Response(500, json={"success": False, "message": "Database Error"})

        args = build_parser().parse_args(["browse"])

        with patch("app.console.cli.Prompt.ask", side_effect=answering("n", "q")):
            assert await run_command(args, api_with(handler)) == 0

        assert "Could not load users: Database Error" in output.export_text()
