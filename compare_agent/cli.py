"""Click CLI: config loading, provider selection, folder watching and stored-comparison lookups."""

import asyncio
import logging
import signal
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from compare_agent.errors import StorageError
from compare_agent.healthcheck import run_health_checks
from compare_agent.output import print_comparison, print_comparison_list
from compare_agent.pipeline import ComparisonPipeline
from compare_agent.providers.anthropic import AnthropicProvider
from compare_agent.providers.base import ResponseProvider
from compare_agent.providers.gemini import GeminiProvider
from compare_agent.providers.openai_provider import OpenAIProvider
from compare_agent.store import JsonComparisonStore
from compare_agent.watcher import ExtensionFilter, run_agent
from config.config_loader import AppConfig, load_config

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

# Keyed by the `sdk` field of each model in settings.yaml
PROVIDER_CLASSES: dict[str, type[ResponseProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_all_providers(config: AppConfig) -> dict[str, ResponseProvider]:
    """Build all available providers. Returns dict keyed by name."""
    providers: dict[str, ResponseProvider] = {}
    for name in sorted(config.available_providers):
        model_cfg = config.models[name]
        provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
        if provider_cls is None:
            logging.warning("Provider '%s' uses unknown sdk '%s', skipping", name, model_cfg.sdk)
            continue
        try:
            providers[name] = provider_cls(model_cfg)
        except Exception as exc:
            logging.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _select_panel(
    config: AppConfig,
    all_providers: dict[str, ResponseProvider],
    models_arg: str | None,
) -> list[ResponseProvider]:
    """Returns the providers each file is sent to, in panel order. --models overrides config."""
    if models_arg:
        names = [m.strip() for m in models_arg.split(",") if m.strip()]
    elif config.defaults.panel:
        names = config.defaults.panel
    else:
        names = sorted(all_providers)

    panel: list[ResponseProvider] = []
    for name in names:
        if name in all_providers:
            panel.append(all_providers[name])
        else:
            logger.warning("Provider '%s' not available, leaving it out of the panel", name)
    return panel


def _check_and_filter_providers(all_providers: dict[str, ResponseProvider]) -> dict[str, ResponseProvider]:
    """Run health checks, print results, and ask user what to do on failures.

    Returns the filtered dict of working providers. Exits if the user
    declines to continue or no providers pass.
    """
    console.print("\n[bold]Checking providers...[/bold]")
    results: dict[str, tuple[bool, str]] = asyncio.run(run_health_checks(all_providers))

    failed_names: list[str] = []
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")
            failed_names.append(name)

    if not failed_names:
        console.print()
        return all_providers

    working = {n: p for n, p in all_providers.items() if n not in failed_names}

    if not working:
        console.print("\n[bold red]Error:[/bold red] No providers passed the health check.")
        sys.exit(1)

    console.print(
        f"\n[yellow]{len(failed_names)} provider(s) failed:[/yellow] {', '.join(failed_names)}"
    )
    console.print(f"Working providers: {', '.join(sorted(working))}")

    if not click.confirm("Continue with working providers only?", default=True):
        sys.exit(0)

    console.print()
    return working


def _install_signal_handlers(cancel: asyncio.Event) -> None:
    """Set cancel on SIGINT/SIGTERM so in-flight events abort and the loop exits cleanly."""
    loop = asyncio.get_running_loop()

    def request_shutdown() -> None:
        if not cancel.is_set():
            console.print("\n[yellow]Shutdown requested...[/yellow]")
        cancel.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown)
        except (NotImplementedError, RuntimeError):
            # Windows event loops: Ctrl+C arrives as KeyboardInterrupt instead
            logger.debug("Signal handler for %s not supported on this platform", sig)


async def _run_watch(
    pipeline: ComparisonPipeline,
    watch_dir: Path,
    max_concurrent_events: int,
) -> None:
    cancel = asyncio.Event()
    _install_signal_handlers(cancel)
    outcomes = await run_agent(pipeline, watch_dir, cancel, max_concurrent_events)
    logger.debug("Event outcomes: %s", {o.value: n for o, n in outcomes.items()})


def _load_config_or_exit(settings_path: Path | None) -> AppConfig:
    try:
        return load_config(settings_path) if settings_path else load_config()
    except (FileNotFoundError, ValueError, KeyError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Path to settings.yaml (default: bundled config/settings.yaml)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Response Compare Agent -- send new files to several LLMs and compare their words.

    \b
    Examples:
      compare-agent watch
      compare-agent watch --dir ./inbox --models openai,claude
      compare-agent list
      compare-agent show 3f2b9c1e-...
    """
    # Reconfigure stdout/stderr to UTF-8 on Windows so model responses containing
    # Unicode chars don't crash the ANSI render path.
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)
    ctx.obj = _load_config_or_exit(Path(config_path) if config_path else None)


@main.command()
@click.option("--dir", "watch_dir_override", default=None, help="Folder to watch (default: from config)")
@click.option("--output", "output_override", default=None, help="Comparison store folder (default: from config)")
@click.option("--models", default=None, help="Comma-separated provider list, overrides the configured panel")
@click.option("--allow-partial", is_flag=True, default=False,
              help="Keep a comparison when some providers fail but at least 2 succeed")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
@click.pass_obj
def watch(
    config: AppConfig,
    watch_dir_override: str | None,
    output_override: str | None,
    models: str | None,
    allow_partial: bool,
    skip_health_check: bool,
) -> None:
    """Watch a folder and compare model responses for every new file."""
    watch_dir = Path(watch_dir_override) if watch_dir_override else config.watch.dir
    store_dir = Path(output_override) if output_override else config.store.dir

    all_providers = _build_all_providers(config)
    if not all_providers:
        console.print("[bold red]Error:[/bold red] No providers available. Check API keys in .env.")
        sys.exit(1)

    if not skip_health_check:
        all_providers = _check_and_filter_providers(all_providers)

    panel = _select_panel(config, all_providers, models)
    if len(panel) < 2:
        console.print(
            f"[bold red]Error:[/bold red] Need at least 2 providers to compare, got {len(panel)}. "
            "Check API keys in .env or adjust --models."
        )
        sys.exit(1)

    pipeline = ComparisonPipeline(
        providers=panel,
        store=JsonComparisonStore(store_dir),
        is_allowed=ExtensionFilter(config.watch.extensions),
        instruction=config.prompts.instruction,
        debounce_sec=config.watch.debounce_sec,
        on_comparison=print_comparison,
        allow_partial=allow_partial or config.defaults.allow_partial,
    )

    console.print("\n[bold cyan]Response Compare Agent[/bold cyan] started")
    console.print(f"Panel: {', '.join(p.name() for p in panel)}")
    console.print(f"Watching: {watch_dir} ({', '.join(config.watch.extensions)})")
    console.print(f"Comparisons will be saved to: {store_dir}")
    console.print("Press Ctrl+C to stop.\n")

    try:
        asyncio.run(_run_watch(pipeline, watch_dir, config.watch.max_concurrent_events))
    except KeyboardInterrupt:
        pass
    console.print("Agent stopped cleanly.")


@main.command(name="list")
@click.option("--output", "output_override", default=None, help="Comparison store folder (default: from config)")
@click.pass_obj
def list_comparisons(config: AppConfig, output_override: str | None) -> None:
    """List every stored comparison, oldest first."""
    store = JsonComparisonStore(Path(output_override) if output_override else config.store.dir)
    try:
        comparisons = store.get_all()
    except StorageError as exc:
        console.print(f"[bold red]Storage error:[/bold red] {exc}")
        sys.exit(1)
    print_comparison_list(comparisons)


@main.command()
@click.argument("comparison_id")
@click.option("--output", "output_override", default=None, help="Comparison store folder (default: from config)")
@click.pass_obj
def show(config: AppConfig, comparison_id: str, output_override: str | None) -> None:
    """Show one stored comparison by id."""
    store = JsonComparisonStore(Path(output_override) if output_override else config.store.dir)
    try:
        comparison = store.get_by_id(comparison_id.strip())
    except StorageError as exc:
        console.print(f"[bold red]Storage error:[/bold red] {exc}")
        sys.exit(1)

    if comparison is None:
        console.print(f"[bold red]Not found:[/bold red] no comparison with id {comparison_id}")
        sys.exit(1)
    print_comparison(comparison)


if __name__ == "__main__":
    main()
