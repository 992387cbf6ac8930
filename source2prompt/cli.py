"""CLI interface for source2prompt."""

import asyncio
import logging
import sys
from pathlib import Path

import click

from source2prompt.combine import build_combined_output
from source2prompt.config import Config
from source2prompt.scanner import ProgressReporter, Scanner, ScanSnapshot
from source2prompt.scanner.progress import ScanTimer, format_bytes
from source2prompt.selection import (
    QUICK_SELECT_KEYS,
    select_by_category,
    select_by_glob,
    selectable_paths,
)
from source2prompt.stats import DEFAULT_PREAMBLE, PromptText, compute_stats
from source2prompt.tokens import TOKENIZER_MODES, configure_tokenizer
from source2prompt.transform import TransformOptions


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.option(
    "--tokenizer",
    type=click.Choice(TOKENIZER_MODES),
    default="tiktoken",
    help="Token counter: tiktoken encodings or a bytes/4 estimate",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, tokenizer: str) -> None:
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    config = Config(tokenizer=tokenizer)
    configure_tokenizer(config.tokenizer)
    ctx.obj["config"] = config


def selection_options(func):
    """Options shared by commands that operate on a selection."""
    options = [
        click.option(
            "--select",
            "categories",
            type=click.Choice(QUICK_SELECT_KEYS),
            multiple=True,
            help="Quick-select a file category (repeatable). Defaults to all-text.",
        ),
        click.option(
            "--glob",
            "globs",
            multiple=True,
            help="Select files matching a gitignore-style pattern (repeatable)",
        ),
        click.option("--remove-comments", is_flag=True, help="Strip comments before counting"),
        click.option("--minify", is_flag=True, help="Minify content before counting"),
        click.option("--no-preamble", is_flag=True, help="Leave out the preamble text"),
        click.option("--preamble", default=DEFAULT_PREAMBLE, help="Preamble text"),
        click.option("--goal", default="", help="Goal text placed after the preamble"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _scan(config: Config, root: Path, progress_interval: int) -> tuple[ScanSnapshot, ScanTimer]:
    reporter = ProgressReporter(interval=progress_interval)
    scanner = Scanner(config.scanner, on_progress=reporter)
    timer = ScanTimer()
    snapshot = asyncio.run(scanner.scan(root))
    if snapshot is None:
        raise click.ClickException(f"Scan of {root} was superseded before it finished.")
    return snapshot, timer


def _resolve_selection(
    config: Config,
    snapshot: ScanSnapshot,
    categories: tuple[str, ...],
    globs: tuple[str, ...],
) -> frozenset[str]:
    chosen = []
    for key in categories or (() if globs else ("all-text",)):
        chosen.extend(select_by_category(snapshot.flat_files, key))
    chosen.extend(select_by_glob(snapshot.flat_files, globs))
    return selectable_paths(chosen, config.scanner.include_ceiling_bytes)


def _prompt(no_preamble: bool, preamble: str, goal: str) -> PromptText:
    return PromptText(
        include_preamble=not no_preamble,
        preamble=preamble,
        include_goal=bool(goal.strip()),
        goal=goal,
    )


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--progress-interval", type=int, default=1000, help="Print status every N files")
@click.pass_context
def scan(ctx: click.Context, root: Path, progress_interval: int) -> None:
    """Scan a project tree and summarise what was found."""
    config: Config = ctx.obj["config"]
    snapshot, timer = _scan(config, root, progress_interval)
    ProgressReporter(progress_interval).report_completion(snapshot, timer)

    text_files = snapshot.text_files()
    large = [f for f in text_files if f.num_lines < 0]
    too_big = [f for f in text_files if f.size_bytes > config.scanner.include_ceiling_bytes]

    click.echo(f"Root: {snapshot.root.path}")
    click.echo(f"  Files: {len(snapshot.flat_files):,}")
    click.echo(f"  Text files: {len(text_files):,}")
    click.echo(f"  Total size: {format_bytes(snapshot.total_bytes)}")
    click.echo(f"  Large text files (read as prefix): {len(large):,}")
    click.echo(f"  Not selectable (over include ceiling): {len(too_big):,}")


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@selection_options
@click.pass_context
def stats(
    ctx: click.Context,
    root: Path,
    categories: tuple[str, ...],
    globs: tuple[str, ...],
    remove_comments: bool,
    minify: bool,
    no_preamble: bool,
    preamble: str,
    goal: str,
) -> None:
    """Print size, line and token statistics for a selection."""
    config: Config = ctx.obj["config"]
    snapshot, _ = _scan(config, root, config.scanner.progress_interval)
    selection = _resolve_selection(config, snapshot, categories, globs)

    result = asyncio.run(
        compute_stats(
            snapshot,
            selection,
            TransformOptions(remove_comments=remove_comments, minify=minify),
            _prompt(no_preamble, preamble, goal),
            config=config.stats,
        )
    )

    usage = result.token_count / config.context_window
    cost = result.token_count / 1_000_000 * config.cost_per_1m_tokens
    click.echo(f"Files: {result.file_count:,} selected / {len(snapshot.flat_files):,} scanned")
    click.echo(f"Size: {format_bytes(result.size_bytes)}")
    click.echo(f"Lines: {result.line_count:,}")
    click.echo(f"Tokens: {result.token_count:,} ({usage:.1%} of {config.context_window:,})")
    click.echo(f"Estimated cost: ${cost:.4f}")
    if result.token_count > config.context_window:
        click.echo("Warning: selection exceeds the context window.", err=True)


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@selection_options
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write to file"
)
@click.pass_context
def combine(
    ctx: click.Context,
    root: Path,
    categories: tuple[str, ...],
    globs: tuple[str, ...],
    remove_comments: bool,
    minify: bool,
    no_preamble: bool,
    preamble: str,
    goal: str,
    output: Path | None,
) -> None:
    """Build the combined prompt document for a selection."""
    config: Config = ctx.obj["config"]
    snapshot, _ = _scan(config, root, config.scanner.progress_interval)
    selection = _resolve_selection(config, snapshot, categories, globs)
    if not selection:
        click.echo("Error: no files selected.", err=True)
        sys.exit(1)

    result = build_combined_output(
        snapshot,
        selection,
        _prompt(no_preamble, preamble, goal),
        TransformOptions(remove_comments=remove_comments, minify=minify),
        read_ceiling=config.scanner.read_ceiling_bytes,
    )

    if output is None:
        click.echo(result.text)
        return

    output.write_text(result.text, encoding="utf-8")
    click.echo(
        f"Wrote {output} ({format_bytes(result.bytes)}, "
        f"{result.lines:,} lines, {result.tokens:,} tokens)"
    )


def main() -> None:
    """Entry point for the CLI."""
    cli(standalone_mode=True)  # pylint: disable=no-value-for-parameter


if __name__ == "__main__":
    main()
