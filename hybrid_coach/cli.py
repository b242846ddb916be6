#!/usr/bin/env python3
"""
HYBRID Coach CLI.

Commands:
- chat: talk to the coach against your workout store
- segment: run the response parser over a saved coach response (offline)

Usage:
    hybrid-coach chat --user-id <uid>
    hybrid-coach segment response.txt --workouts workouts.json
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict
from typing import Dict, Optional

import click
import requests
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from hybrid_coach import __version__, config
from hybrid_coach.actions import classify_payloads, segment_response
from hybrid_coach.actions.segmenter import apply_truncation_notice

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@click.group()
@click.version_option(__version__)
def cli():
    """HYBRID Coach CLI - AI coach over your workout calendar."""
    pass


# =============================================================================
# CHAT
# =============================================================================

def print_help() -> None:
    console.print("\n[bold]Slash commands[/bold]")
    console.print("- /confirm   run the action the coach is waiting on")
    console.print("- /cancel    drop the action the coach is waiting on")
    console.print("- /plan      add the last proposed plan to your calendar")
    console.print("- /workouts  list your scheduled workouts")
    console.print("- /new       start a new conversation")
    console.print("- exit\n")


def _print_assistant(message) -> None:
    if message.content:
        console.print(f"[bold cyan]Coach[/bold cyan]: {message.content}")
    if message.workout_plan is not None:
        plan = message.workout_plan
        lines = [f"[bold]{plan.name}[/bold] ({plan.weeks} weeks)"]
        if plan.summary:
            lines.append(plan.summary)
        for workout in plan.workouts:
            exercises = ", ".join(e.name for e in workout.exercises[:3])
            more = f" +{len(workout.exercises) - 3}" if len(workout.exercises) > 3 else ""
            lines.append(f"• {workout.day_of_week}: {workout.name} ({exercises}{more})")
        lines.append("[dim]/plan to add it to your calendar[/dim]")
        console.print(Panel("\n".join(lines), title="Workout plan", style="magenta"))
    if message.pending_action is not None:
        console.print(Panel(
            f"{message.pending_action.describe()}\n[dim]/confirm or /cancel[/dim]",
            title="Confirm action",
            style="yellow",
        ))


def _print_workouts(session) -> None:
    workouts = session.store.workouts
    if not workouts:
        console.print("[dim]No workouts scheduled yet.[/dim]")
        return
    for w in workouts:
        marker = " [dim](saving…)[/dim]" if w.is_temporary else ""
        console.print(f"  {w.scheduled_date}  {w.name}{marker}")


@cli.command("chat")
@click.option("--user-id", envvar="HYBRID_USER_ID", required=True, help="User whose workouts the coach manages")
@click.option("--base-url", default=config.HYBRID_FUNCTIONS_BASE_URL, show_default=True, help="Workout store base URL")
@click.option("--name", "user_name", default=None, help="Name used in the greeting")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def chat(user_id: str, base_url: str, user_name: Optional[str], verbose: bool):
    """Interactive chat with the coach."""
    from hybrid_coach.libs.llm import GeminiClient
    from hybrid_coach.libs.tools_workouts import WorkoutStoreClient
    from hybrid_coach.shell import CoachSession, ConversationBusyError, InvalidTransitionError
    from hybrid_coach.store import CoachMemory, ExerciseLibrary, OptimisticWorkoutStore

    _setup_logging(verbose)
    console.print(Panel("🏋️ HYBRID Coach", style="bold magenta"))

    client = WorkoutStoreClient(
        base_url=base_url,
        user_id=user_id,
        api_key=config.HYBRID_API_KEY,
        timeout_seconds=config.HYBRID_HTTP_TIMEOUT_SECS,
    )
    with OptimisticWorkoutStore(client) as store:
        session = CoachSession(GeminiClient(), store, ExerciseLibrary(client), CoachMemory(client))
        try:
            session.load()
        except requests.RequestException as e:
            console.print(f"[red]✗ Could not load your data: {e}[/red]")
            sys.exit(1)

        _print_assistant(session.greeting(user_name))
        console.print("Type '/help' for commands. Type 'exit' to quit.\n")

        while True:
            raw = Prompt.ask("[green]You[/green]").strip()
            if not raw:
                continue
            command = raw.lower()
            if command == "exit":
                break
            try:
                if command == "/help":
                    print_help()
                elif command == "/workouts":
                    _print_workouts(session)
                elif command == "/new":
                    _print_assistant(session.reset(user_name))
                elif command == "/confirm":
                    pending = session.latest_pending()
                    if pending is None:
                        console.print("[yellow]Nothing waiting for confirmation[/yellow]")
                        continue
                    result = session.confirm(pending.id)
                    style = "green" if result.success else "red"
                    console.print(f"[{style}]{'✓' if result.success else '✗'} {result.message}[/{style}]")
                elif command == "/cancel":
                    pending = session.latest_pending()
                    if pending is None:
                        console.print("[yellow]Nothing waiting for confirmation[/yellow]")
                        continue
                    session.cancel(pending.id)
                    console.print("[dim]Cancelled[/dim]")
                elif command == "/plan":
                    proposal = session.latest_plan()
                    if proposal is None:
                        console.print("[yellow]No plan to add[/yellow]")
                        continue
                    with console.status("Adding workouts…"):
                        reply = session.accept_plan(proposal.id)
                    _print_assistant(reply)
                elif raw.startswith("/"):
                    console.print("[yellow]Unknown command. Type /help[/yellow]")
                else:
                    with console.status("Thinking…"):
                        reply = session.send(raw)
                    _print_assistant(reply)
            except (ConversationBusyError, InvalidTransitionError) as e:
                console.print(f"[yellow]{e}[/yellow]")


# =============================================================================
# SEGMENT (OFFLINE)
# =============================================================================

@cli.command("segment")
@click.argument("response_file", type=click.File("r"))
@click.option("--workouts", "workouts_file", type=click.File("r"), default=None,
              help="JSON object of workout id -> name used to label deletes and updates")
def segment(response_file, workouts_file):
    """
    Parse a saved coach response without calling any service.

    Prints the display text and the classified plan and actions as JSON.

    Examples:
        hybrid-coach segment response.txt
        hybrid-coach segment response.txt --workouts workouts.json
    """
    names: Dict[str, str] = {}
    if workouts_file is not None:
        try:
            names = json.load(workouts_file)
        except ValueError as e:
            click.echo(click.style(f"✗ Invalid workouts JSON: {e}", fg="red"), err=True)
            sys.exit(1)

    segmented = segment_response(response_file.read())
    classified = classify_payloads(segmented.payloads, names)

    output = {
        "display_text": apply_truncation_notice(
            segmented.display_text, segmented.had_truncated_block, classified.parsed_count
        ),
        "had_truncated_block": segmented.had_truncated_block,
        "payloads": len(segmented.payloads),
        "valid_payloads": classified.valid_count,
        "plan": classified.plan.to_dict() if classified.plan else None,
        "pending_action": (
            {"type": classified.pending_action.type.value, **asdict(classified.pending_action)}
            if classified.pending_action else None
        ),
        "immediate_actions": [
            {"type": a.type.value, **asdict(a)} for a in classified.immediate_actions
        ],
    }
    click.echo(json.dumps(output, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
