from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .errors import VCardError
from .model import Card

console = Console()

# ── Palette ────────────────────────────────────────────────────────────────────
_ACCENT  = "#4d9fff"
_GREEN   = "#3ecf8e"
_RED     = "#f05c5c"
_TEXT    = "#c9d1e0"
_MID     = "#8896af"
_DIM     = "#546075"
_BORDER  = "#2a3347"


@dataclass
class CheckResult:
    path: Path
    cards: int = 0
    error: VCardError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def print_check_report(results: list[CheckResult], out: Console | None = None) -> None:
    out = out or console
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("File")
    table.add_column("Cards", justify="right")
    table.add_column("Status")
    for r in results:
        if r.ok:
            status = Text("ok", style=f"bold {_GREEN}")
        else:
            status = Text(str(r.error), style=_RED)
        table.add_row(r.path.name, str(r.cards), status)
    out.print(table)

    failed = [r for r in results if not r.ok]
    total = sum(r.cards for r in results)
    body = Text()
    if failed:
        body.append(f"✗  {len(failed)} of {len(results)} file(s) failed\n", style=f"bold {_RED}")
    else:
        body.append(f"✓  {len(results)} file(s) valid\n", style=f"bold {_GREEN}")
    body.append(f"{total} card(s) parsed", style=f"dim {_MID}")
    out.print(Panel(body, border_style=_RED if failed else _GREEN, padding=(0, 2)))


def print_card(card: Card, index: int = 1, out: Console | None = None) -> None:
    out = out or console
    table = Table(show_header=True, header_style=f"bold {_ACCENT}", box=None, padding=(0, 2))
    table.add_column("Group", style=_DIM)
    table.add_column("Property", style=f"bold {_TEXT}")
    table.add_column("Type", style=_MID)
    table.add_column("Parameters", style=_MID)
    table.add_column("Value", style=_TEXT)
    for prop in card:
        table.add_row(
            prop.group or "",
            prop.name,
            str(prop.value_type),
            prop.parameters.render().lstrip(";"),
            prop.display(),
        )
    title = Text(f"  CARD {index}  {card.fn or 'Unnamed'}  ", style=f"dim {_DIM}")
    out.print(Panel(table, title=title, title_align="left", border_style=_BORDER))
