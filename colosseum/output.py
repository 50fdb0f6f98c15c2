"""Rich console output and markdown export for debates."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from colosseum.models import Debate, TickResult, VoteTally
from colosseum.votes import flavor_text, split_percentages

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_CARD_RE = re.compile(r"\b(10|[AKQJT2-9])([shdc])\b")
_SUIT_SYMBOLS = {"s": "♠", "h": "♥", "d": "♦", "c": "♣"}

SPEAKER_STYLES = {
    "gto": ("GTO_Bot", "blue"),
    "exploit": ("Exploit_Bot", "red"),
    "dealer": ("Dealer", "yellow"),
    "noob": ("Noob", "green"),
}


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _format_time(timestamp: str | None) -> str:
    """Short chat-style time, e.g. 2/17 16:45. Empty for missing or bad input."""
    if not timestamp:
        return ""
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return ""
    return f"{moment.month}/{moment.day} {moment:%H:%M}"


def render_cards(text: str) -> str:
    """Replace card notation such as "Ah" or "Td" with suit symbols."""
    return _CARD_RE.sub(lambda m: m.group(1) + _SUIT_SYMBOLS[m.group(2)], text)


def _scenario_line(debate: Debate) -> str:
    s = debate.scenario
    if s is None:
        return "No scenario"
    return (
        f"{s.game_type} | {s.pot_type} | {s.stack_depth}bb eff. | pot {s.pot_size}bb | "
        f"{s.hero_hand or '??'} | {s.context} | {s.duration_mode}"
    )


def print_debate(debate: Debate) -> None:
    """Print a debate as a column of speaker panels."""
    budget = debate.max_turns if debate.max_turns is not None else "?"
    gto_percent, exploit_percent = split_percentages(debate.votes_gto, debate.votes_exploit)
    console.print(Rule(f"[bold cyan]{debate.title}[/bold cyan]"))
    console.print(Text(_scenario_line(debate), style="dim"))
    console.print(
        Text(
            f"Turns: {len(debate.transcript)}/{budget} | "
            f"GTO {debate.votes_gto} ({gto_percent}%) vs Exploit {debate.votes_exploit} ({exploit_percent}%)",
            style="dim",
        )
    )
    for turn in debate.transcript:
        label, style = SPEAKER_STYLES.get(turn.speaker, SPEAKER_STYLES["dealer"])
        console.print(
            Panel(
                Markdown(render_cards(turn.content.replace("\\n", "\n"))),
                title=f"[bold {style}]{label}[/bold {style}]",
                subtitle=_format_time(turn.timestamp),
                border_style=style,
            )
        )


def print_debate_list(debates: list[Debate]) -> None:
    table = Table(title="Arena debates", show_lines=False)
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Title")
    table.add_column("Mode")
    table.add_column("Turns", justify="right")
    table.add_column("GTO", justify="right", style="blue")
    table.add_column("Exploit", justify="right", style="red")
    table.add_column("Created", style="dim")
    for d in debates:
        budget = d.max_turns if d.max_turns is not None else "?"
        table.add_row(
            d.id or "",
            d.title,
            d.scenario.duration_mode if d.scenario else "",
            f"{len(d.transcript)}/{budget}",
            str(d.votes_gto),
            str(d.votes_exploit),
            _format_time(d.created_at),
        )
    console.print(table)


def print_tick_result(result: TickResult) -> None:
    if result.mode == "skipped":
        console.print("[dim]Skipped: the dice said not now.[/dim]")
        return
    colour = {"created": "green", "continued": "cyan", "unchanged": "yellow"}.get(result.mode, "white")
    console.print(
        f"[bold {colour}]{result.mode.upper()}[/bold {colour}] {result.title or ''} "
        f"[dim]({result.debate_id}, {result.turns}/{result.max_turns} turns, {result.duration_mode})[/dim]"
    )
    if result.winner:
        console.print(f"Initial winner: [bold]{result.winner}[/bold]")


def print_faction(tally: VoteTally) -> None:
    """Print the global GTO vs Exploit gauge."""
    width = 50
    gto_width = round(width * tally.gto_percent / 100)
    bar = Text()
    bar.append("█" * gto_width, style="blue")
    bar.append("█" * (width - gto_width), style="red")
    console.print(
        f"GTO Dominance: [blue]{tally.gto_percent}%[/blue]   "
        f"Total Battles: {tally.battles}   "
        f"Exploit Resistance: [red]{tally.exploit_percent}%[/red]"
    )
    console.print(bar)
    console.print(Text(flavor_text(tally), style="dim"))


def save_to_file(debate: Debate, output_dir: Path) -> Path:
    """Save a debate transcript as a markdown file.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = f"{timestamp}_{_slug(debate.title) or 'debate'}.md"
    filepath = output_dir / filename

    gto_percent, exploit_percent = split_percentages(debate.votes_gto, debate.votes_exploit)
    lines: list[str] = [
        f"# AI Colosseum: {debate.title}",
        "",
        f"**Debate ID:** {debate.id}",
        f"**Created:** {debate.created_at}",
        f"**Scenario:** {_scenario_line(debate)}",
        f"**Turns:** {len(debate.transcript)}/{debate.max_turns if debate.max_turns is not None else '?'}",
        f"**Votes:** GTO {debate.votes_gto} ({gto_percent}%) | Exploit {debate.votes_exploit} ({exploit_percent}%)",
        "",
        "---",
        "",
    ]

    for turn in debate.transcript:
        label, _ = SPEAKER_STYLES.get(turn.speaker, SPEAKER_STYLES["dealer"])
        stamp = _format_time(turn.timestamp)
        lines.append(f"### {label}" + (f" ({stamp})" if stamp else ""))
        lines.append("")
        lines.append(turn.content.replace("\\n", "\n"))
        lines.append("")

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Debate saved to: %s", filepath)
    return filepath
