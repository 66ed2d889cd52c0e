from __future__ import annotations

import asyncio
import contextlib
import signal
import sys
from typing import Any, Dict, Optional

import typer

from dic.config import Settings, get_settings
from dic.domain.models import FailurePolicy, ImageSize, ImageType, SearchOptions
from dic.errors import DicError
from dic.infrastructure.cache import build_cache, close_cache
from dic.infrastructure.streams import STDIN_SENTINEL, RecordReader, RecordWriter, open_input
from dic.lookup.google import GoogleImageSearch
from dic.pipeline.scheduler import RunSummary, Scheduler
from dic.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Resolve words to image links, in input order, with bounded concurrency.")
log = get_logger("dic")


def _mask(secret: str) -> str:
    if not secret:
        return "<unset>"
    return secret[:4] + "..." if len(secret) > 8 else "***"


def _effective_settings(**overrides: Any) -> Settings:
    """Apply CLI overrides on top of env/.env settings."""
    update: Dict[str, Any] = {k: v for k, v in overrides.items() if v is not None}
    settings = get_settings()
    return settings.model_copy(update=update) if update else settings


def build_lookup_client(settings: Settings) -> GoogleImageSearch:
    return GoogleImageSearch(
        api_key=settings.google_api_key,
        cx=settings.google_cx,
        endpoint=settings.google_endpoint,
    )


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    cache = (
        f"redis={settings.redis_addr}/{settings.redis_db}"
        if settings.redis_addr
        else ("local" if settings.local_cache else "off")
    )
    typer.echo(
        f"google key={_mask(settings.google_api_key)} cx={_mask(settings.google_cx)} | "
        f"concurrency={settings.concurrency} timeout={settings.task_timeout}s "
        f"column={settings.key_column} on_error={settings.failure_policy.value} | cache={cache}"
    )


async def _search_once(settings: Settings, query: str, options: SearchOptions) -> Optional[str]:
    async with build_lookup_client(settings) as client:
        items = await asyncio.wait_for(client.search(query, options), timeout=settings.task_timeout)
    return items[0].link if items else None


@app.command()
def search(
    query: str = typer.Argument(..., help="Word to retrieve the image of."),
    image_type: ImageType = typer.Option(
        ImageType.UNDEFINED, "--type", "-t", help="Image type to search for."
    ),
    image_size: ImageSize = typer.Option(
        ImageSize.UNDEFINED, "--size", "-s", help="Image size to search for."
    ),
) -> None:
    """
    Look up a single word and print the first image link.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    options = SearchOptions(image_type=image_type, image_size=image_size)
    try:
        link = asyncio.run(_search_once(settings, query, options))
    except asyncio.TimeoutError:
        log.error("search for %r timed out after %ss", query, settings.task_timeout)
        raise typer.Exit(code=1)
    except DicError as exc:
        log.error("%s", exc)
        raise typer.Exit(code=1)
    typer.echo(link if link is not None else "no results")


async def _run_pipeline(settings: Settings, input_path: str, options: SearchOptions) -> RunSummary:
    cache = await build_cache(settings)
    try:
        async with build_lookup_client(settings) as client:
            scheduler = Scheduler(
                lookup=client,
                writer=RecordWriter(sys.stdout, delimiter=settings.delimiter),
                cache=cache,
                options=options,
                concurrency=settings.concurrency,
                task_timeout=settings.task_timeout,
                key_column=settings.key_column,
                failure_policy=settings.failure_policy,
                sentinel=settings.sentinel,
                namespace=settings.cache_namespace,
            )
            loop = asyncio.get_running_loop()
            installed = []
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError, RuntimeError):
                    loop.add_signal_handler(sig, _on_signal, sig, scheduler)
                    installed.append(sig)
            try:
                with open_input(input_path) as stream:
                    return await scheduler.run(RecordReader(stream, delimiter=settings.delimiter))
            finally:
                for sig in installed:
                    loop.remove_signal_handler(sig)
    finally:
        await close_cache(cache)


def _on_signal(sig: signal.Signals, scheduler: Scheduler) -> None:
    log.info("signal %s received, canceling", sig.name)
    scheduler.cancel()


@app.command()
def run(
    input_path: str = typer.Option(
        STDIN_SENTINEL,
        "--input",
        "-i",
        help='CSV file containing the words to retrieve the image of. Use "-" for stdin.',
    ),
    column: Optional[int] = typer.Option(
        None, "--column", "-c", min=0, help="Column holding the word (default from settings)."
    ),
    image_type: ImageType = typer.Option(
        ImageType.UNDEFINED, "--type", "-t", help="Image type to search for."
    ),
    image_size: ImageSize = typer.Option(
        ImageSize.UNDEFINED, "--size", "-s", help="Image size to search for."
    ),
    redis_addr: Optional[str] = typer.Option(
        None, "--ra", help="Redis address (host:port). If set, used as link cache."
    ),
    redis_db: Optional[int] = typer.Option(None, "--rdb", min=0, help="Redis DB."),
    local_cache: Optional[bool] = typer.Option(
        None, "--local-cache/--no-local-cache", help="Use an in-process link cache."
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-n", min=1, help="Maximum number of lookups in flight."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Per-record lookup deadline in seconds."
    ),
    on_error: Optional[FailurePolicy] = typer.Option(
        None, "--on-error", help="Emit failed records with a sentinel field, or skip them."
    ),
    sentinel: Optional[str] = typer.Option(
        None, "--sentinel", help="Trailing field for failed records."
    ),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", "-d", help="Field delimiter."),
) -> None:
    """
    Append an image link to every CSV record, preserving input order.
    """
    if delimiter is not None and len(delimiter) != 1:
        raise typer.BadParameter("delimiter must be a single character", param_hint="--delimiter")
    settings = _effective_settings(
        key_column=column,
        redis_addr=redis_addr,
        redis_db=redis_db,
        local_cache=local_cache,
        concurrency=concurrency,
        task_timeout=timeout,
        failure_policy=on_error,
        sentinel=sentinel,
        delimiter=delimiter,
    )
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    options = SearchOptions(image_type=image_type, image_size=image_size)

    try:
        summary = asyncio.run(_run_pipeline(settings, input_path, options))
    except DicError as exc:
        log.error("exiting input processing loop: %s", exc)
        raise typer.Exit(code=1)

    log.info(
        "processed %d records (%d emitted, %d failed, %d cache hits)",
        summary["records_read"],
        summary["emitted"],
        summary["failed"],
        summary["cache_hits"],
    )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
