"""Rich summary of a built plan: one row per population."""

from __future__ import annotations

from dataclasses import fields

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .injection import expected_users, model_duration
from .models import LoadPlan, Population


def _format_duration(seconds: float) -> str:
    """Format seconds as Xs or Xm Ys."""
    s = max(0, int(round(seconds)))
    if s >= 60:
        m, s = divmod(s, 60)
        return f"{m}m {s}s"
    return f"{s}s"


def describe_profiles(population: Population) -> str:
    """Compact profile list, e.g. 'spike(10) -> ramp_up(20, 10s)'."""
    parts = []
    for step in population.model.steps:
        args = [
            f"{getattr(step, f.name)}s" if f.name == "duration_seconds" else str(getattr(step, f.name))
            for f in fields(step)
        ]
        parts.append(f"{step.kind.value}({', '.join(args)})")
    return " -> ".join(parts)


def build_plan_table(plan: LoadPlan) -> Table:
    """Build a single Rich table describing every population of plan."""
    title = Text()
    title.append("loadplan ", style="bold magenta")
    title.append(f"| {plan.name} | {len(plan)} population(s)", style="dim")
    table = Table(title=title, border_style="blue")
    table.add_column("Scenario", style="cyan")
    table.add_column("Base URL")
    table.add_column("Chains", justify="right")
    table.add_column("Steps", justify="right")
    table.add_column("Model")
    table.add_column("Profiles", style="green")
    table.add_column("Users", justify="right")
    table.add_column("Duration", justify="right")

    for population in plan.populations:
        scenario = population.scenario
        table.add_row(
            scenario.name,
            population.protocol.base_url,
            str(len(scenario.chains)),
            str(len(scenario.steps)),
            population.model.family.value,
            describe_profiles(population),
            str(expected_users(population.model)),
            _format_duration(model_duration(population.model)),
        )
    return table


def print_plan_summary(plan: LoadPlan, console: Console | None = None) -> None:
    (console or Console()).print(build_plan_table(plan))
