"""CLI entry point for agent-reputation.

Invoked as::

    agent-reputation [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m agent_reputation.cli.main

Commands
--------
version     Show version information
tier        Classify a score and show progress to the next tier
aggregate   Aggregate a JSON list of source scores
score       Evaluate a subject from a JSON file of raw facts
history     Show recorded snapshots for a subject
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

console = Console()


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="agent-reputation")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
def cli(log_level: str) -> None:
    """Multi-source reputation scoring for AI agents"""
    logging.basicConfig(level=getattr(logging, log_level.upper()))


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from agent_reputation import __version__

    console.print(f"[bold]agent-reputation[/bold] v{__version__}")


# ------------------------------------------------------------------
# tier
# ------------------------------------------------------------------


@cli.command(name="tier")
@click.argument("score", type=int)
@click.option(
    "--policy-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON policy file providing a custom tier table.",
)
def tier_command(score: int, policy_file: str | None) -> None:
    """Classify SCORE (0-10000) and show progress to the next tier."""
    from agent_reputation.scoring import TierContractError

    policy = _load_policy(policy_file)
    try:
        progress = policy.tier_table().progress(score)
    except TierContractError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    console.print(f"  Score:   [bold]{progress.score}[/bold]")
    console.print(f"  Tier:    [bold]{progress.tier}[/bold]")
    if progress.next_tier is None:
        console.print("  Next:    (top tier)")
    else:
        console.print(f"  Next:    {progress.next_tier} in {progress.points_to_next} points")
    console.print(f"  Progress: {progress.progress * 100:.1f}%")


# ------------------------------------------------------------------
# aggregate
# ------------------------------------------------------------------


@cli.command(name="aggregate")
@click.argument("sources_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--now", type=int, default=None, help="Evaluation time in epoch milliseconds.")
@click.option(
    "--policy-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON policy file.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def aggregate_command(
    sources_file: str,
    now: int | None,
    policy_file: str | None,
    as_json: bool,
) -> None:
    """Aggregate the source scores listed in SOURCES_FILE (a JSON array)."""
    from agent_reputation.engine import now_ms
    from agent_reputation.scoring import Aggregator, SourceContractError, SourceScore

    aggregator = Aggregator(_load_policy(policy_file))
    try:
        entries = json.loads(Path(sources_file).read_text(encoding="utf-8"))
        sources = [SourceScore.from_dict(entry) for entry in entries]
        result = aggregator.aggregate(sources, now if now is not None else now_ms())
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error:[/red] {sources_file} is not valid JSON: {exc}")
        sys.exit(1)
    except SourceContractError as exc:
        console.print(f"[red]Contract violation:[/red] {exc}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), sort_keys=True))
        return

    _print_sources(sources)
    _print_result(result.to_dict())


# ------------------------------------------------------------------
# score
# ------------------------------------------------------------------


@cli.command(name="score")
@click.argument("subject_id")
@click.option(
    "--facts",
    "facts_file",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="JSON file of raw facts (payments, stakes, credentials, reviews, endpoint_tests, api_usage).",
)
@click.option("--now", type=int, default=None, help="Evaluation time in epoch milliseconds.")
@click.option(
    "--policy-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON policy file.",
)
@click.option(
    "--history-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSONL history store; the result is recorded when given.",
)
@click.option("--timeout", type=float, default=None, help="Collector deadline in seconds.")
@click.option("--json", "as_json", is_flag=True, help="Print the evaluation as JSON.")
def score_command(
    subject_id: str,
    facts_file: str,
    now: int | None,
    policy_file: str | None,
    history_file: str | None,
    timeout: float | None,
    as_json: bool,
) -> None:
    """Evaluate SUBJECT_ID from the raw facts in --facts."""
    from agent_reputation.collectors import default_collectors
    from agent_reputation.engine import EvaluationStatus, ReputationEngine
    from agent_reputation.scoring import Aggregator, SourceContractError

    policy = _load_policy(policy_file)
    try:
        facts = _load_facts(Path(facts_file))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        console.print(f"[red]Error:[/red] could not read facts from {facts_file}: {exc}")
        sys.exit(1)

    engine = ReputationEngine(
        default_collectors(
            policy,
            payments=_static(facts["payments"]),
            stakes=_static(facts["stakes"]),
            credentials=_static(facts["credentials"]),
            reviews=_static(facts["reviews"]),
            endpoint_tests=_static(facts["endpoint_tests"]),
            api_usage=_static(facts["api_usage"]),
        ),
        aggregator=Aggregator(policy),
        timeout_s=timeout,
    )
    try:
        evaluation = asyncio.run(engine.evaluate(subject_id, now=now))
    except SourceContractError as exc:
        console.print(f"[red]Contract violation:[/red] {exc}")
        sys.exit(1)

    if history_file and evaluation.status is not EvaluationStatus.TOTAL_FAILURE:
        from agent_reputation.scoring import JsonlHistoryStore, ScoreHistory

        history = ScoreHistory(JsonlHistoryStore(Path(history_file)), tier_table=policy.tier_table())
        history.record_result(subject_id, evaluation.result)

    if as_json:
        click.echo(json.dumps(evaluation.to_dict(), sort_keys=True))
    else:
        _print_sources(evaluation.sources)
        _print_result(evaluation.result.to_dict())
        console.print(f"  Status:        {evaluation.status.value}")
        if evaluation.badges:
            console.print(f"  Badges:        {', '.join(evaluation.badges)}")
        for failure in evaluation.failures:
            console.print(f"  [yellow]Failed:[/yellow] {failure.source.value}: {failure.error}")

    if evaluation.all_failed:
        sys.exit(2)


# ------------------------------------------------------------------
# history
# ------------------------------------------------------------------


@cli.command(name="history")
@click.argument("subject_id")
@click.option(
    "--history-file",
    type=click.Path(dir_okay=False),
    required=True,
    help="JSONL history store.",
)
@click.option("--limit", type=int, default=10, show_default=True, help="Maximum rows shown.")
@click.option("--at", "at_ms", type=int, default=None, help="Show the snapshot nearest this time.")
def history_command(subject_id: str, history_file: str, limit: int, at_ms: int | None) -> None:
    """Show recorded score snapshots for SUBJECT_ID."""
    from agent_reputation.scoring import JsonlHistoryStore, ScoreHistory

    if not Path(history_file).exists():
        console.print(f"[yellow]No history recorded for {subject_id}.[/yellow]")
        return
    try:
        history = ScoreHistory(JsonlHistoryStore(Path(history_file)))
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if at_ms is not None:
        nearest = history.nearest(subject_id, at_ms)
        snapshots = [nearest] if nearest is not None else []
    else:
        snapshots = history.recent(subject_id, limit=limit)

    if not snapshots:
        console.print(f"[yellow]No history recorded for {subject_id}.[/yellow]")
        return

    table = Table(title=f"Score History — {subject_id}", show_header=True)
    table.add_column("Row", justify="right")
    table.add_column("Timestamp (ms)", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Tier", style="cyan")
    for snapshot in snapshots:
        table.add_row(
            str(snapshot.row_id),
            str(snapshot.timestamp_ms),
            str(snapshot.score),
            snapshot.tier,
        )
    console.print(table)
    console.print(f"\nTrend: {history.trend(subject_id)}")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _load_policy(policy_file: str | None):  # type: ignore[no-untyped-def]
    """Return the policy from *policy_file*, or the default policy."""
    from agent_reputation.scoring import ReputationPolicy

    if not policy_file:
        return ReputationPolicy()
    try:
        policy = ReputationPolicy.from_file(policy_file)
        policy.validate_weights()
    except (json.JSONDecodeError, ValueError) as exc:
        console.print(f"[red]Error:[/red] invalid policy file {policy_file}: {exc}")
        sys.exit(1)
    return policy


def _static(records: Sequence[Any]) -> Callable[[str], Awaitable[Sequence[Any]]]:
    """Wrap already-loaded records as an async fact provider."""

    async def provider(subject_id: str) -> Sequence[Any]:
        return records

    return provider


def _load_facts(path: Path) -> dict[str, list[Any]]:
    """Parse a facts file into collector records keyed by category."""
    from agent_reputation.collectors import (
        ApiUsageRecord,
        CredentialRecord,
        EndpointTestRecord,
        PaymentRecord,
        ReviewRecord,
        StakeRecord,
    )

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")

    def credential(entry: dict[str, Any]) -> CredentialRecord:
        signature: Optional[str] = entry.get("signature")
        return CredentialRecord(
            credential_type=str(entry["credential_type"]),
            issuer=str(entry.get("issuer", "")),
            issued_at_ms=int(entry["issued_at_ms"]),
            signature=bytes.fromhex(signature) if signature else None,
        )

    return {
        "payments": [PaymentRecord(**e) for e in data.get("payments", [])],
        "stakes": [StakeRecord(**e) for e in data.get("stakes", [])],
        "credentials": [credential(e) for e in data.get("credentials", [])],
        "reviews": [ReviewRecord(**e) for e in data.get("reviews", [])],
        "endpoint_tests": [EndpointTestRecord(**e) for e in data.get("endpoint_tests", [])],
        "api_usage": [ApiUsageRecord(**e) for e in data.get("api_usage", [])],
    }


def _print_sources(sources) -> None:  # type: ignore[no-untyped-def]
    table = Table(title="Source Scores", show_header=True)
    table.add_column("Source", style="cyan")
    table.add_column("Raw", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Data points", justify="right")
    table.add_column("Decay", justify="right")
    for s in sources:
        table.add_row(
            s.source.value,
            f"{s.raw_score:.0f}",
            f"{s.weight:.2f}",
            f"{s.confidence:.2f}",
            str(s.data_points),
            f"{s.decay_factor:.3f}",
        )
    console.print(table)


def _print_result(result: dict[str, object]) -> None:
    console.print(f"\n  Score:         [bold]{result['score']}[/bold]")
    console.print(
        f"  Interval:      [{result['confidence_low']}, {result['confidence_high']}]"
    )
    console.print(f"  Tier:          [bold]{result['tier']}[/bold]")
    console.print(f"  Sources used:  {result['sources_used']}")


if __name__ == "__main__":
    cli()
