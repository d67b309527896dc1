# app/console/views.py
"""Rich renderers for users, pages of users and the create/edit form."""

from datetime import date
from typing import Any

from pydantic import ValidationError
from rich.columns import Columns
from rich.console import Console, Group
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from app.console.api import ApiError, UserPage
from app.console.queries import ListState
from app.schemas.user import Gender, Occupation, UserCreate, UserUpdate
from app.utils.helpers import age_on

GENDER_ICONS = {"Male": "👨", "Female": "👩", "Other": "🧑"}
OCCUPATION_ICONS = {"Student": "🎓", "Engineer": "👷", "Teacher": "👨‍🏫", "Unemployed": "🔍"}
OCCUPATION_COLORS = {"Student": "blue", "Engineer": "green", "Teacher": "magenta", "Unemployed": "dark_orange"}
MAX_VISIBLE_PAGES = 5


def user_age(birthday: str) -> int | None:
    try:
        return age_on(date.fromisoformat(birthday[:10]))
    except ValueError:
        return None


def occupation_badge(occupation: str) -> Text:
    icon = OCCUPATION_ICONS.get(occupation, "💼")
    color = OCCUPATION_COLORS.get(occupation, "grey50")
    return Text(f"{icon} {occupation}", style=f"bold {color}")


def image_url(user: dict[str, Any], base_url: str = "") -> str:
    """Absolute avatar URL; local uploads are served relative to the API host."""
    image = user.get("image") or ""
    if not image or image.startswith("http"):
        return image
    return f"{base_url.rstrip('/')}{image}"


def user_table(users: list[dict[str, Any]], base_url: str = "") -> Table:
    table = Table(title="👥 Users", show_lines=False, header_style="bold cyan")
    table.add_column("Avatar", overflow="fold", max_width=30)
    table.add_column("Name", style="bold")
    table.add_column("Gender")
    table.add_column("Age", justify="right")
    table.add_column("Birthday")
    table.add_column("Occupation")
    table.add_column("Phone")
    table.add_column("ID", style="dim", overflow="fold")

    for user in users:
        age = user_age(user.get("birthday", ""))
        gender = user.get("gender", "")
        table.add_row(
            image_url(user, base_url) or "-",
            user.get("name", ""),
            f"{GENDER_ICONS.get(gender, '👤')} {gender}",
            str(age) if age is not None else "-",
            user.get("birthday", ""),
            occupation_badge(user.get("occupation", "")),
            user.get("phone", ""),
            str(user.get("id", "")),
        )
    return table


def user_card(user: dict[str, Any], base_url: str = "") -> Panel:
    age = user_age(user.get("birthday", ""))
    gender = user.get("gender", "")
    body = Group(
        Text(f"{GENDER_ICONS.get(gender, '👤')} {gender}" + (f", {age} years" if age is not None else "")),
        occupation_badge(user.get("occupation", "")),
        Text(f"📞 {user.get('phone', '')}"),
        Text(f"🎂 {user.get('birthday', '')}"),
        Text(f"🖼  {image_url(user, base_url) or 'no image'}", style="dim"),
    )
    return Panel(body, title=f"[bold]{user.get('name', '')}[/bold]", subtitle=str(user.get("id", "")), expand=False)


def user_cards(users: list[dict[str, Any]], base_url: str = "") -> Columns:
    return Columns([user_card(user, base_url) for user in users], equal=True)


def visible_pages(current: int, total: int) -> list[int]:
    """Up to five page numbers centered on the current page."""
    if total <= 0:
        return []
    start = max(1, current - MAX_VISIBLE_PAGES // 2)
    end = min(total, start + MAX_VISIBLE_PAGES - 1)
    if end - start < MAX_VISIBLE_PAGES - 1:
        start = max(1, end - MAX_VISIBLE_PAGES + 1)
    return list(range(start, end + 1))


def pagination_bar(page: UserPage) -> Text:
    bar = Text()
    bar.append("‹ ", style="dim" if page.current_page <= 1 else "bold")
    for number in visible_pages(page.current_page, page.total_pages):
        style = "reverse bold" if number == page.current_page else ""
        bar.append(f" {number} ", style=style)
    bar.append(" ›", style="dim" if page.current_page >= page.total_pages else "bold")
    bar.append(f"   Page {page.current_page} of {max(page.total_pages, 1)} ({page.total} users)")
    if page.cached:
        bar.append("  ⚡ cached", style="dim")
    return bar


def render_page(console: Console, page: UserPage, base_url: str = "", *, cards: bool = False) -> None:
    if not page.users:
        console.print(Panel("No users found.", style="yellow", expand=False))
    elif cards:
        console.print(user_cards(page.users, base_url))
    else:
        console.print(user_table(page.users, base_url))
    console.print(pagination_bar(page))


def loading_hint(console: Console, state: ListState) -> None:
    """Shown while `state` still holds the previous page."""
    page, _, search = state.params
    target = f"page {page}" + (f" for '{search}'" if search else "")
    console.print(Text(f"⏳ Loading {target}...", style="dim"))


def error_toast(console: Console, error: ApiError) -> None:
    lines = [Text(error.message, style="bold")]
    lines.extend(Text(f"• {item.get('field')}: {item.get('message')}") for item in error.errors)
    console.print(Panel(Group(*lines), title="❌ Error", border_style="red", expand=False))


def success_toast(console: Console, message: str) -> None:
    console.print(Panel(message, title="✅ Success", border_style="green", expand=False))


def load_error_hint(console: Console, error: ApiError) -> None:
    console.print(f"[red]Could not load users: {error.message}[/red]")
    console.print("[dim]Check that the API is running, then try again.[/dim]")


def _form_errors(error: ValidationError) -> dict[str, str]:
    return {
        str(item["loc"][0]): str(item["msg"]).removeprefix("Value error, ")
        for item in error.errors(include_url=False)
        if item.get("loc")
    }


def prompt_user_form(console: Console, current: dict[str, Any] | None = None) -> dict[str, str]:
    """
    Ask for each field and re-ask until the same rules the API applies pass.

    With `current`, every prompt defaults to the stored value and only changed
    fields are returned.
    """
    model = UserUpdate if current else UserCreate
    current = current or {}
    values: dict[str, str] = {}
    choices = {"gender": [g.value for g in Gender], "occupation": [o.value for o in Occupation]}
    labels = {
        "name": "Name",
        "gender": "Gender",
        "birthday": "Birthday (YYYY-MM-DD)",
        "occupation": "Occupation",
        "phone": "Phone",
    }

    for field_name, label in labels.items():
        while True:
            default = str(current.get(field_name, "")) or None
            answer = Prompt.ask(label, console=console, choices=choices.get(field_name), default=default)
            answer = (answer or "").strip()
            try:
                model.model_validate({field_name: answer})
            except ValidationError as e:
                message = _form_errors(e).get(field_name)
                if message:
                    console.print(f"[red]{message}[/red]")
                    continue
            values[field_name] = answer
            break

    if current:
        return {key: value for key, value in values.items() if value != str(current.get(key, ""))}
    return values
