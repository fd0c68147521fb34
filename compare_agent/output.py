"""Rich console rendering of comparisons."""

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from compare_agent.models import Comparison, Response

console = Console(legacy_windows=False)

_SHARED_PREVIEW = 15
_UNIQUE_PREVIEW = 10


def _word_preview(words: tuple[str, ...], limit: int) -> str:
    shown = ", ".join(words[:limit])
    if len(words) > limit:
        shown += "..."
    return shown


def _response_preview(response: Response, words: int = 50) -> str:
    """Return first N words of a response."""
    all_words = response.response_text.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def _response_subtitle(response: Response) -> str:
    parts: list[str] = []
    if response.token_count is not None:
        parts.append(f"{response.token_count} tokens")
    if response.estimated_cost is not None:
        parts.append(f"${response.estimated_cost:.5f}")
    return " | ".join(parts)


def print_comparison(comparison: Comparison, full_text: bool = True) -> None:
    """Print responses side by side with the word analysis."""
    console.print()
    console.print(Rule(f"[bold cyan]Comparison: {comparison.question.file_name}[/bold cyan]"))

    for resp in comparison.responses:
        body = resp.response_text if full_text else _response_preview(resp)
        console.print(
            Panel(
                body or Text("(empty response)", style="dim italic"),
                title=f"[bold]{resp.provider}[/bold] ({resp.model_name})",
                subtitle=_response_subtitle(resp) or None,
                border_style="dim",
            )
        )

    analysis = comparison.analysis
    console.print(Rule("[bold green]Word Analysis[/bold green]"))
    console.print(
        f"Shared words ({len(analysis.shared_words)}): "
        f"{_word_preview(analysis.shared_words, _SHARED_PREVIEW)}"
    )
    for model, words in analysis.unique_words_by_model.items():
        console.print(f"{model} only ({len(words)}): {_word_preview(words, _UNIQUE_PREVIEW)}")

    console.print(
        Text(
            f"Compared at: {comparison.compared_at:%Y-%m-%d %H:%M:%S} UTC | Id: {comparison.id}",
            style="dim",
        )
    )


def print_comparison_list(comparisons: list[Comparison]) -> None:
    """Print one row per stored comparison."""
    if not comparisons:
        console.print("No comparisons stored yet.")
        return

    table = Table(title=f"{len(comparisons)} comparison(s)")
    table.add_column("Compared at (UTC)", style="dim")
    table.add_column("Id")
    table.add_column("File")
    table.add_column("Models")
    table.add_column("Shared", justify="right")
    for c in comparisons:
        table.add_row(
            f"{c.compared_at:%Y-%m-%d %H:%M:%S}",
            c.id,
            c.question.file_name,
            ", ".join(r.model_name for r in c.responses),
            str(len(c.analysis.shared_words)),
        )
    console.print(table)
