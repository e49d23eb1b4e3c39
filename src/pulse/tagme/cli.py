"""Command-line entry points for the TagMe stage.

Usage:
    pulse-tagme text "Rome is the capital of Italy" --lang en --min-rho 0.1
    pulse-tagme batch messages.jsonl tagged.jsonl --workers 8 --log-file run.log
    pulse-tagme consume --url redis://localhost:6379
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from pulse.shared.logger import RunLogger
from pulse.shared.queue import NullQueue
from pulse.tagme.client import TagMeClient
from pulse.tagme.config import TagMeConfig, TagMeSettings, load_config
from pulse.tagme.errors import ConfigError
from pulse.tagme.operator import tag_messages
from pulse.tagme.tagger import TagMeTagger
from pulse.tagme.types import Message


def _build_config(config_path: Path | None, min_rho: float | None) -> TagMeConfig:
    config = load_config(config_path)
    if min_rho is not None:
        config = config.model_copy(update={"min_confidence": min_rho})
    return config


def _build_tagger() -> TagMeTagger:
    return TagMeTagger(TagMeClient(TagMeSettings.from_env()))


def _read_messages(path: Path, log: RunLogger):
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                yield Message.from_dict(json.loads(line))
            except ValueError as e:
                log.error(f"{path}:{lineno}: skipping invalid message: {e}")
                log.count("invalid_lines")


config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='JSON stage config, e.g. {"minRho": 0.1}',
)
min_rho_option = click.option(
    "--min-rho",
    type=float,
    default=None,
    help="Minimum rho for an annotation to become a tag (overrides --config)",
)


@click.group()
def main() -> None:
    """Tag messages with entities found by the TagMe service."""


@main.command()
@click.argument("text")
@click.option("--lang", "language", required=True, help="Two-letter language code (IT or EN)")
@config_option
@min_rho_option
@click.option("--json", "json_output", is_flag=True, help="Output the tags as JSON")
def text(
    text: str,
    language: str,
    config_path: Path | None,
    min_rho: float | None,
    json_output: bool,
) -> None:
    """Tag a single TEXT and print the tags."""
    try:
        config = _build_config(config_path, min_rho)
        tagger = _build_tagger()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    with tagger.client:
        tags = tagger.process(text, language, config)

    if json_output:
        click.echo(json.dumps([t.to_dict() for t in tags], indent=2))
    elif not tags:
        click.echo("No tags.")
    else:
        for tag in tags:
            click.echo(tag.text)


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output_path", type=click.Path(dir_okay=False, path_type=Path))
@config_option
@min_rho_option
@click.option("--workers", type=int, default=1, show_default=True, help="Parallel tagging threads")
@click.option("--log-file", type=click.Path(path_type=Path), default=None, help="INFO+ log file")
@click.option("--trace-file", type=click.Path(path_type=Path), default=None, help="Full detail log file")
def batch(
    input_path: Path,
    output_path: Path,
    config_path: Path | None,
    min_rho: float | None,
    workers: int,
    log_file: Path | None,
    trace_file: Path | None,
) -> None:
    """Tag every message of a JSONL file and write the results as JSONL."""
    log = RunLogger(log_file=log_file, trace_file=trace_file, title="Pulse TagMe")
    log.install_stdlib_bridge(root_logger="pulse", level=10)
    log.install_stdlib_bridge(root_logger="", level=30)

    try:
        config = _build_config(config_path, min_rho)
        tagger = _build_tagger()
    except ConfigError as e:
        log.error(str(e))
        log.close()
        sys.exit(2)

    log.section("Pulse TagMe batch")
    log.info(f"Input:   {input_path}")
    log.info(f"Output:  {output_path}")
    log.info(f"minRho:  {config.min_confidence}")
    log.info(f"Workers: {workers}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with tagger.client, open(output_path, "w", encoding="utf-8") as out, log.timer("tagging"):
        messages = _read_messages(input_path, log)
        for message in tag_messages(messages, tagger, config, workers=workers):
            produced = sum(1 for t in message.tags if tagger.name in t.sources)
            log.count("messages")
            log.count("tags", produced)
            if produced == 0:
                log.count("messages_without_tags")
            out.write(json.dumps(message.to_dict(), ensure_ascii=False) + "\n")

    log.summary()
    log.close()


@main.command()
@click.option("--url", default=None, help="Redis URL (default: $QUEUE_URL)")
@config_option
@min_rho_option
def consume(url: str | None, config_path: Path | None, min_rho: float | None) -> None:
    """Run the stage as a Redis Streams worker until interrupted.

    Tagged messages are published only when QUEUE_ENABLED=true; otherwise
    the worker runs dry and discards them.
    """
    from pulse.shared.queue import create_queue, queue_url
    from pulse.tagme.consumer import TaggingQueueConsumer

    log = RunLogger(title="Pulse TagMe worker")
    log.install_stdlib_bridge(root_logger="pulse", level=20)

    try:
        config = _build_config(config_path, min_rho)
        settings = TagMeSettings.from_env()
        tagger = _build_tagger()
    except ConfigError as e:
        log.error(str(e))
        log.close()
        sys.exit(2)

    redis_url = url or queue_url()
    output = create_queue(redis_url)
    if isinstance(output, NullQueue):
        log.warn("QUEUE_ENABLED=false: dry run, tagged messages are discarded")
    elif not output.is_available():
        log.error(f"Cannot publish tagged messages: Redis unavailable at {redis_url}")
        log.close()
        sys.exit(1)

    worker = TaggingQueueConsumer(
        redis_url=redis_url,
        tagger=tagger,
        output=output,
        config=config,
        stream=settings.input_stream,
        output_stream=settings.output_stream,
    )
    log.info(f"Consuming {settings.input_stream} -> {settings.output_stream} on {redis_url}")
    with tagger.client:
        worker.run()
    log.close()


if __name__ == "__main__":
    main()
