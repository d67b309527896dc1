#!/usr/bin/env python3
"""
User Directory Console.

Browse and edit the user directory from a terminal.

Usage:
    user-directory list --page 2 --search eng
    user-directory browse --search eng
    user-directory show <id>
    user-directory create --name "Ada Lovelace" --gender Female \\
        --birthday 1995-12-10 --occupation Engineer --phone "+1 555 123 4567"
    user-directory update <id> --occupation Teacher --image avatar.png
    user-directory delete <id>

Create and update prompt for the form when no field option is given.

Environment Variables:
    USER_DIRECTORY_API: API root (default: http://HOST:PORT/api)
"""

from argparse import ArgumentParser, Namespace, RawDescriptionHelpFormatter
from asyncio import Task, create_task, gather, sleep, to_thread
from asyncio import run as asyncio_run
from os import environ
from pathlib import Path
from sys import exit as sys_exit

from rich.console import Console
from rich.prompt import Confirm, Prompt

from app.console.api import FORM_FIELDS, ApiError, UserApiClient, default_base_url
from app.console.queries import Debouncer, UserQueries
from app.console.views import (
    error_toast,
    load_error_hint,
    loading_hint,
    prompt_user_form,
    render_page,
    success_toast,
    user_card,
)

console = Console()

BROWSE_PROMPT = "[n]ext, [p]rev, /search, [q]uit"


def host_root(base_url: str) -> str:
    """Origin serving ``/uploads`` for a given API root."""
    return base_url.removesuffix("/").removesuffix("/api")


def form_from_args(args: Namespace) -> dict[str, str]:
    return {field: getattr(args, field) for field in FORM_FIELDS if getattr(args, field, None)}


def image_from_args(args: Namespace) -> Path | None:
    if not getattr(args, "image", None):
        return None
    image = Path(args.image).expanduser()
    if not image.is_file():
        msg = f"Image not found: {image}"
        raise ApiError(0, msg)
    return image


async def cmd_list(queries: UserQueries, args: Namespace) -> None:
    try:
        state = await queries.list(args.page, args.limit, args.search)
    except ApiError as e:
        load_error_hint(console, e)
        raise
    if state.data is not None:
        render_page(console, state.data, host_root(args.base_url), cards=args.cards)


async def _load_page(queries: UserQueries, args: Namespace, page: int, search: str) -> None:
    """Fetch a page and render it unless a newer request has taken over."""
    try:
        state = await queries.list(page, args.limit, search)
    except ApiError as e:
        load_error_hint(console, e)
        return
    if state.params == (page, args.limit, search) and not state.is_placeholder and state.data:
        render_page(console, state.data, host_root(args.base_url), cards=args.cards)


async def cmd_browse(queries: UserQueries, args: Namespace) -> None:
    """
    Page through users interactively.

    ``n``/``p`` move between pages, ``/text`` searches (debounced), ``/``
    clears the search and ``q`` quits. Page loads run in the background, so
    quick successive moves only render the page asked for last.
    """
    debounce = Debouncer()
    loads: set[Task] = set()
    page, search = args.page, args.search

    def start(task: Task) -> None:
        loads.add(task)
        task.add_done_callback(loads.discard)

    await _load_page(queries, args, page, search)
    while True:
        answer = (await to_thread(Prompt.ask, BROWSE_PROMPT, console=console, default="q")).strip()
        if answer == "q":
            break
        if answer.startswith("/"):
            search, page = answer[1:].strip(), 1
            debounce(_load_page, queries, args, page, search)
            continue
        if answer not in ("n", "p"):
            console.print(f"[yellow]Unknown key: {answer}[/yellow]")
            continue

        shown = queries.state.data if queries.state else None
        last_page = max(shown.total_pages, 1) if shown else 1
        page = min(page + 1, last_page) if answer == "n" else max(page - 1, 1)
        debounce.cancel()
        start(create_task(_load_page(queries, args, page, search)))
        await sleep(0)
        if queries.state and queries.state.is_placeholder:
            loading_hint(console, queries.state)

    debounce.cancel()
    if loads:
        await gather(*loads)


async def cmd_show(queries: UserQueries, args: Namespace) -> None:
    user = await queries.get(args.user_id)
    console.print(user_card(user, host_root(args.base_url)))


async def cmd_create(queries: UserQueries, args: Namespace) -> None:
    data = form_from_args(args) or prompt_user_form(console)
    user = await queries.create(data, image_from_args(args))
    success_toast(console, f"User created successfully: {user['name']} ({user['id']})")


async def cmd_update(queries: UserQueries, args: Namespace) -> None:
    image = image_from_args(args)
    data = form_from_args(args)
    if not data and image is None:
        data = prompt_user_form(console, await queries.get(args.user_id))
    user = await queries.update(args.user_id, data, image)
    success_toast(console, f"User updated successfully: {user['name']}")


async def cmd_delete(queries: UserQueries, args: Namespace) -> None:
    if not args.yes and not Confirm.ask(f"Delete user {args.user_id}?", console=console):
        console.print("Cancelled.")
        return
    await queries.delete(args.user_id)
    success_toast(console, "User deleted successfully")


COMMANDS = {
    "list": cmd_list,
    "browse": cmd_browse,
    "show": cmd_show,
    "create": cmd_create,
    "update": cmd_update,
    "delete": cmd_delete,
}


def _add_form_options(parser: ArgumentParser) -> None:
    parser.add_argument("--name", help="Full name (letters and spaces, 2-50 chars)")
    parser.add_argument("--gender", choices=["Male", "Female", "Other"])
    parser.add_argument("--birthday", help="Date of birth, YYYY-MM-DD")
    parser.add_argument("--occupation", choices=["Student", "Engineer", "Teacher", "Unemployed"])
    parser.add_argument("--phone", help="Phone number, 10-15 chars")
    parser.add_argument("--image", help="Path to an avatar image (JPEG, PNG, GIF or WebP)")


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="user-directory",
        description="Browse and edit the user directory.",
        epilog=__doc__,
        formatter_class=RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--base-url",
        default=environ.get("USER_DIRECTORY_API", default_base_url()),
        help="API root URL",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List users")
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--limit", type=int, default=6)
    list_parser.add_argument("--search", default="")
    list_parser.add_argument("--cards", action="store_true", help="Render cards instead of a table")

    browse_parser = sub.add_parser("browse", help="Page through users interactively")
    browse_parser.add_argument("--page", type=int, default=1)
    browse_parser.add_argument("--limit", type=int, default=6)
    browse_parser.add_argument("--search", default="")
    browse_parser.add_argument("--cards", action="store_true", help="Render cards instead of a table")

    show_parser = sub.add_parser("show", help="Show one user")
    show_parser.add_argument("user_id")

    create_parser = sub.add_parser("create", help="Create a user")
    _add_form_options(create_parser)

    update_parser = sub.add_parser("update", help="Update a user")
    update_parser.add_argument("user_id")
    _add_form_options(update_parser)

    delete_parser = sub.add_parser("delete", help="Delete a user")
    delete_parser.add_argument("user_id")
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")

    return parser


async def run_command(args: Namespace, api: UserApiClient | None = None) -> int:
    """
    Execute the parsed command.

    Returns
    -------
    int
        Process exit code: 0 on success, 1 when the API reported an error.
    """
    async with api or UserApiClient(args.base_url) as client:
        queries = UserQueries(client)
        try:
            await COMMANDS[args.command](queries, args)
        except ApiError as e:
            if args.command != "list":
                error_toast(console, e)
            return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        sys_exit(asyncio_run(run_command(args)))
    except KeyboardInterrupt:
        console.print("\nInterrupted.")
        sys_exit(130)


if __name__ == "__main__":
    main()
