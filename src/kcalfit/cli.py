"""CLI interface using Typer."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import date
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from kcalfit.config import get_settings
from kcalfit.db import get_db
from kcalfit.tracking.models import (
    CIRCUMFERENCE_METRICS,
    BodyMeasurement,
    ChangeSignal,
    ConfidenceLevel,
    Grouping,
    TrackerError,
    WeightEntry,
)
from kcalfit.tracking.pipeline import TrackerState, analyze, analyze_to_fixed_point
from kcalfit.tracking.queries import (
    EntryQueries,
    MeasurementQueries,
    TrackerStore,
)

app = typer.Typer(
    help="Infer maintenance calories, kcal/kg and body composition from a weight log",
    no_args_is_help=True,
)
console = Console()

# Subcommand groups
weight_app = typer.Typer(help="Log weigh-ins and daily calories")
measure_app = typer.Typer(help="Log body-fat and circumference measurements")
profile_app = typer.Typer(help="Starting point, goals and analysis preferences")
stats_app = typer.Typer(help="Trend, kcal/kg and body-composition reports")

app.add_typer(weight_app, name="weight")
app.add_typer(measure_app, name="measure")
app.add_typer(profile_app, name="profile")
app.add_typer(stats_app, name="stats")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def fail(command: str, message: str, json_output: bool, suggestion: Optional[str] = None) -> NoReturn:
    """Report an error and exit with status 1."""
    if json_output:
        response: dict = {"success": False, "command": command, "errors": [message]}
        if suggestion:
            response["suggestions"] = [suggestion]
        output_json(response)
    else:
        console.print(f"[red]{message}[/red]")
        if suggestion:
            console.print(suggestion)
    raise typer.Exit(1)


def parse_date(value: Optional[str], command: str, json_output: bool) -> date:
    """Parse YYYY-MM-DD, defaulting to today."""
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        fail(command, f"Invalid date: {value} (expected YYYY-MM-DD)", json_output)


def get_store() -> TrackerStore:
    """Tracker store on the configured database, with configured defaults."""
    analysis = get_settings().analysis
    return TrackerStore(
        get_db(),
        confidence=analysis.confidence,
        trend_window=analysis.trend_window,
        grouping=analysis.grouping,
    )


def load_state(command: str, json_output: bool) -> tuple[TrackerStore, TrackerState]:
    store = get_store()
    try:
        return store, store.load()
    except TrackerError as e:
        fail(command, f"Stored settings are invalid: {e}", json_output)


def require_entries(state: TrackerState, command: str, json_output: bool, minimum: int = 2) -> None:
    if len(state.entries) < minimum:
        fail(
            command,
            f"Not enough weight data (need at least {minimum} entries)",
            json_output,
            "Log weight with: kcalfit weight add <kg> --calories <kcal>",
        )


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return None if value is None else round(value, digits)


def _round_pair(pair: Optional[tuple[float, float]], digits: int = 2) -> Optional[list[float]]:
    return None if pair is None else [round(pair[0], digits), round(pair[1], digits)]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging before any command runs."""
    try:
        settings = get_settings()
    except TrackerError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)

    level = "DEBUG" if verbose else settings.logging.level
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# Weight Log Commands
# ============================================================================


@weight_app.command("add")
def weight_add(
    weight: float = typer.Argument(..., help="Weight in kg"),
    calories: Optional[float] = typer.Option(
        None, "--calories", "-c", help="Calories eaten that day (kcal)"
    ),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log a weigh-in. Re-logging a date replaces that day's entry."""
    day = parse_date(date_str, "weight add", json_output)
    try:
        entry = WeightEntry(date=day, weight=weight, calories=calories)
    except TrackerError as e:
        fail("weight add", str(e), json_output)

    store = get_store()
    with store.db.get_connection() as conn:
        replaced = any(e.date == day for e in EntryQueries.get_all(conn))
        EntryQueries.upsert(conn, entry)

    summary = f"{'Updated' if replaced else 'Logged'} {weight:.1f} kg on {day}"
    if calories is not None:
        summary += f" ({calories:.0f} kcal)"

    if json_output:
        output_json({
            "success": True,
            "command": "weight add",
            "data": {
                "date": day.isoformat(),
                "weight_kg": weight,
                "calories": calories,
                "replaced": replaced,
            },
            "human_summary": summary,
        })
    else:
        console.print(f"[green]{summary}[/green]")


@weight_app.command("list")
def weight_list(
    last: Optional[int] = typer.Option(None, "--last", "-n", help="Only the last N entries"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List logged weigh-ins, oldest first."""
    store = get_store()
    with store.db.get_connection() as conn:
        entries = EntryQueries.get_all(conn)

    if last:
        entries = entries[-last:]

    if json_output:
        output_json({
            "success": True,
            "command": "weight list",
            "data": {
                "entries": [
                    {
                        "date": e.date.isoformat(),
                        "weight_kg": e.weight,
                        "calories": e.calories,
                    }
                    for e in entries
                ]
            },
            "human_summary": f"{len(entries)} entries",
        })
        return

    if not entries:
        console.print("No weight entries found")
        return

    table = Table(title="Weight Log")
    table.add_column("Date", style="cyan")
    table.add_column("Weight (kg)", justify="right")
    table.add_column("Calories", justify="right")
    table.add_column("", justify="right")

    prev_weight = None
    for entry in entries:
        delta = "" if prev_weight is None else f"{entry.weight - prev_weight:+.1f}"
        prev_weight = entry.weight
        table.add_row(
            entry.date.isoformat(),
            f"{entry.weight:.1f}",
            f"{entry.calories:.0f}" if entry.calories is not None else "-",
            delta,
        )

    console.print(table)


@weight_app.command("remove")
def weight_remove(
    date_str: str = typer.Argument(..., help="Date of the entry (YYYY-MM-DD)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Remove the entry logged for a date."""
    day = parse_date(date_str, "weight remove", json_output)

    store = get_store()
    with store.db.get_connection() as conn:
        removed = EntryQueries.delete(conn, day)

    if not removed:
        fail("weight remove", f"No entry logged on {day}", json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "weight remove",
            "data": {"date": day.isoformat()},
            "human_summary": f"Removed entry for {day}",
        })
    else:
        console.print(f"[green]Removed entry for {day}[/green]")


# ============================================================================
# Measurement Commands
# ============================================================================


@measure_app.command("add")
def measure_add(
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    body_fat: Optional[float] = typer.Option(None, "--body-fat", "-b", help="Body fat %"),
    neck: Optional[float] = typer.Option(None, "--neck", help="cm"),
    shoulders: Optional[float] = typer.Option(None, "--shoulders", help="cm"),
    chest: Optional[float] = typer.Option(None, "--chest", help="cm"),
    waist: Optional[float] = typer.Option(None, "--waist", help="cm"),
    hips: Optional[float] = typer.Option(None, "--hips", help="cm"),
    biceps: Optional[float] = typer.Option(None, "--biceps", help="cm"),
    forearms: Optional[float] = typer.Option(None, "--forearms", help="cm"),
    thighs: Optional[float] = typer.Option(None, "--thighs", help="cm"),
    calves: Optional[float] = typer.Option(None, "--calves", help="cm"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log body fat and/or circumference measurements."""
    day = parse_date(date_str, "measure add", json_output)
    try:
        measurement = BodyMeasurement(
            date=day,
            body_fat=body_fat,
            neck=neck,
            shoulders=shoulders,
            chest=chest,
            waist=waist,
            hips=hips,
            biceps=biceps,
            forearms=forearms,
            thighs=thighs,
            calves=calves,
        )
    except TrackerError as e:
        fail("measure add", str(e), json_output)

    store = get_store()
    with store.db.get_connection() as conn:
        MeasurementQueries.add(conn, measurement)

    metrics = measurement.metrics()
    summary = f"Logged {len(metrics)} measurement(s) on {day}"

    if json_output:
        output_json({
            "success": True,
            "command": "measure add",
            "data": {"date": day.isoformat(), **metrics},
            "human_summary": summary,
        })
    else:
        console.print(f"[green]{summary}[/green]")


@measure_app.command("list")
def measure_list(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List measurements, oldest first, with their positions."""
    store = get_store()
    with store.db.get_connection() as conn:
        measurements = MeasurementQueries.get_all(conn)

    if json_output:
        output_json({
            "success": True,
            "command": "measure list",
            "data": {
                "measurements": [
                    {"position": i + 1, "date": m.date.isoformat(), **m.metrics()}
                    for i, m in enumerate(measurements)
                ]
            },
            "human_summary": f"{len(measurements)} measurements",
        })
        return

    if not measurements:
        console.print("No measurements found")
        return

    columns = [
        name for name in ("body_fat",) + CIRCUMFERENCE_METRICS
        if any(getattr(m, name) is not None for m in measurements)
    ]

    table = Table(title="Body Measurements")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    for name in columns:
        label = "Body fat %" if name == "body_fat" else name.capitalize()
        table.add_column(label, justify="right")

    for i, m in enumerate(measurements, start=1):
        values = [getattr(m, name) for name in columns]
        table.add_row(
            str(i),
            m.date.isoformat(),
            *[f"{v:.1f}" if v is not None else "-" for v in values],
        )

    console.print(table)


@measure_app.command("remove")
def measure_remove(
    position: int = typer.Argument(..., help="Position shown by 'kcalfit measure list'"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Remove a measurement by its list position."""
    store = get_store()
    try:
        with store.db.get_connection() as conn:
            removed = MeasurementQueries.delete_at(conn, position - 1)
    except IndexError:
        fail("measure remove", f"No measurement at position {position}", json_output)

    summary = f"Removed measurement from {removed.date}"
    if json_output:
        output_json({
            "success": True,
            "command": "measure remove",
            "data": {"date": removed.date.isoformat(), **removed.metrics()},
            "human_summary": summary,
        })
    else:
        console.print(f"[green]{summary}[/green]")


# ============================================================================
# Profile Commands
# ============================================================================


def _profile_data(state: TrackerState) -> dict:
    return {
        "starting_weight": state.starting_weight,
        "goal_weight": state.goal_weight,
        "starting_body_fat": state.starting_body_fat,
        "goal_body_fat": state.goal_body_fat,
        "maintenance_calories": state.maintenance_calories,
        "measurement_goals": state.measurement_goals,
        "confidence": state.confidence.value,
        "trend_window": state.trend_window,
        "grouping": state.grouping.value,
        "calibration_factor": state.calibration.to_dict(),
    }


@profile_app.command("show")
def profile_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show starting point, goals, preferences and calibration."""
    store, state = load_state("profile show", json_output)
    data = _profile_data(state)

    if json_output:
        output_json({
            "success": True,
            "command": "profile show",
            "data": {
                **data,
                "entries": store.db.get_table_count("weight_entries"),
                "measurements": store.db.get_table_count("body_measurements"),
            },
            "human_summary": f"Goal weight: {state.goal_weight or 'not set'}",
        })
        return

    def fmt(value: Optional[float], unit: str) -> str:
        return "[dim]not set[/dim]" if value is None else f"{value:g} {unit}"

    console.print("[bold]Profile[/bold]")
    console.print(f"  Starting weight:   {fmt(state.starting_weight, 'kg')}")
    console.print(f"  Goal weight:       {fmt(state.goal_weight, 'kg')}")
    console.print(f"  Starting body fat: {fmt(state.starting_body_fat, '%')}")
    console.print(f"  Goal body fat:     {fmt(state.goal_body_fat, '%')}")
    console.print(f"  Maintenance:       {fmt(state.maintenance_calories, 'kcal/day')}")
    for metric, goal in sorted(state.measurement_goals.items()):
        console.print(f"  Goal {metric}: {goal:g} cm")
    console.print()
    console.print("[bold]Analysis[/bold]")
    console.print(f"  Confidence:   {state.confidence.value:.0%}")
    window = f"{state.trend_window} days" if state.trend_window else "all data"
    console.print(f"  Trend window: {window}")
    console.print(f"  Grouping:     {state.grouping.value}")
    console.print()
    calibration = state.calibration
    console.print("[bold]Calibration[/bold]")
    console.print(f"  Muscle gain factor: {calibration.muscle_gain_factor:.2f}")
    console.print(f"  Fat loss factor:    {calibration.fat_loss_factor:.2f}")
    console.print(f"  Last anchor:        {calibration.date or 'none'}")


@profile_app.command("set")
def profile_set(
    starting_weight: Optional[float] = typer.Option(None, "--starting-weight", help="kg"),
    goal_weight: Optional[float] = typer.Option(None, "--goal-weight", help="kg"),
    starting_body_fat: Optional[float] = typer.Option(None, "--starting-body-fat", help="%"),
    goal_body_fat: Optional[float] = typer.Option(None, "--goal-body-fat", help="%"),
    maintenance: Optional[float] = typer.Option(
        None, "--maintenance", help="Known maintenance calories (kcal/day)"
    ),
    confidence: Optional[str] = typer.Option(
        None, "--confidence", help="Confidence level: 0.80, 0.90, 0.95 or 0.99"
    ),
    trend_window: Optional[str] = typer.Option(
        None, "--trend-window", help="Trend window: 14, 30, 60 or all"
    ),
    grouping: Optional[str] = typer.Option(
        None, "--grouping", help="Period grouping: 1w, 2w, 1m or 2m"
    ),
    goals: Optional[list[str]] = typer.Option(
        None, "--goal", help="Measurement goal as METRIC=CM (repeatable)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Update profile values; options not given are left unchanged."""
    from kcalfit.tracking.inference import parse_trend_window

    store, state = load_state("profile set", json_output)
    changes: dict = {}

    try:
        for name, value in (
            ("starting_weight", starting_weight),
            ("goal_weight", goal_weight),
            ("maintenance_calories", maintenance),
        ):
            if value is not None:
                if value <= 0:
                    raise ValueError(f"{name} must be greater than 0")
                changes[name] = value
        for name, value in (
            ("starting_body_fat", starting_body_fat),
            ("goal_body_fat", goal_body_fat),
        ):
            if value is not None:
                if not 0 <= value <= 100:
                    raise ValueError(f"{name} must be within 0-100%")
                changes[name] = value
        if confidence is not None:
            changes["confidence"] = ConfidenceLevel.parse(confidence)
        if trend_window is not None:
            changes["trend_window"] = parse_trend_window(trend_window)
        if grouping is not None:
            changes["grouping"] = Grouping.parse(grouping)
        if goals:
            measurement_goals = dict(state.measurement_goals)
            for item in goals:
                metric, _, raw = item.partition("=")
                metric = metric.strip().lower()
                if metric not in CIRCUMFERENCE_METRICS:
                    raise ValueError(f"Unknown measurement metric: {metric}")
                measurement_goals[metric] = float(raw)
            changes["measurement_goals"] = measurement_goals
    except ValueError as e:
        fail("profile set", str(e), json_output)

    if not changes:
        fail("profile set", "Nothing to update", json_output, "See: kcalfit profile set --help")

    state = replace(state, **changes)
    store.save_settings(state)

    summary = "Updated " + ", ".join(sorted(changes))
    if json_output:
        output_json({
            "success": True,
            "command": "profile set",
            "data": _profile_data(state),
            "human_summary": summary,
        })
    else:
        console.print(f"[green]{summary}[/green]")


# ============================================================================
# Stats Commands
# ============================================================================


@stats_app.command("periods")
def stats_periods(
    grouping: Optional[str] = typer.Option(
        None, "--grouping", "-g", help="1w, 2w, 1m or 2m (default: profile)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Mean weight per period with confidence intervals and changes."""
    _, state = load_state("stats periods", json_output)
    if grouping is not None:
        try:
            state = replace(state, grouping=Grouping.parse(grouping))
        except TrackerError as e:
            fail("stats periods", str(e), json_output)

    periods = analyze(state).weekly_stats

    if json_output:
        output_json({
            "success": True,
            "command": "stats periods",
            "data": {
                "grouping": state.grouping.value,
                "confidence": state.confidence.value,
                "periods": [
                    {
                        "label": p.label,
                        "start": p.start.isoformat(),
                        "end": p.end.isoformat(),
                        "mean": round(p.mean, 2),
                        "sd": round(p.sd, 3),
                        "ci": _round_pair(p.ci),
                        "count": p.count,
                        "change": _round(p.change, 3),
                        "change_ci": _round_pair(p.change_ci, 3),
                        "signal": p.signal.value,
                    }
                    for p in periods
                ],
            },
            "human_summary": f"{len(periods)} periods ({state.grouping.value})",
        })
        return

    if not periods:
        console.print("No weight entries found")
        return

    level = f"{state.confidence.value:.0%}"
    table = Table(title=f"Weight by Period ({state.grouping.value})")
    table.add_column("Period", style="cyan")
    table.add_column("Mean", justify="right")
    table.add_column("SD", justify="right")
    table.add_column(f"{level} CI", justify="right")
    table.add_column("n", justify="right")
    table.add_column("Change", justify="right")
    table.add_column(f"Change {level} CI", justify="right")

    colors = {
        ChangeSignal.INCREASE: "green",
        ChangeSignal.DECREASE: "red",
        ChangeSignal.INCONCLUSIVE: "white",
    }
    for p in periods:
        color = colors[p.signal]
        table.add_row(
            p.label,
            f"{p.mean:.2f}",
            f"{p.sd:.2f}",
            f"{p.ci[0]:.2f} to {p.ci[1]:.2f}",
            str(p.count),
            f"[{color}]{p.change:+.2f}[/{color}]" if p.change is not None else "-",
            f"{p.change_ci[0]:+.2f} to {p.change_ci[1]:+.2f}" if p.change_ci else "-",
        )

    console.print(table)


@stats_app.command("trend")
def stats_trend(
    window: Optional[str] = typer.Option(
        None, "--window", "-w", help="14, 30, 60 or all (default: profile)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Weight trend, energy balance and maintenance estimate."""
    from kcalfit.tracking.inference import parse_trend_window
    from kcalfit.tracking.summary import trend_direction, trend_strength

    _, state = load_state("stats trend", json_output)
    if window is not None:
        try:
            state = replace(state, trend_window=parse_trend_window(window))
        except TrackerError as e:
            fail("stats trend", str(e), json_output)

    inference = analyze(state).inference
    if inference is None:
        fail(
            "stats trend",
            "Not enough weight data in the trend window (need at least 2 entries)",
            json_output,
            "Log weight with: kcalfit weight add <kg>",
        )

    strength = trend_strength(inference.r2)
    direction = trend_direction(inference.weight_change_rate)

    if json_output:
        output_json({
            "success": True,
            "command": "stats trend",
            "data": {
                "trend_window": state.trend_window,
                "weight_change_rate": round(inference.weight_change_rate, 4),
                "weight_change_rate_ci": _round_pair(inference.weight_change_rate_ci, 4),
                "weekly_rate": round(inference.weight_change_rate * 7, 3),
                "surplus_deficit": round(inference.surplus_deficit),
                "maintenance_calories": round(inference.maintenance_calories),
                "maintenance_ci": _round_pair(inference.confidence_interval, 0),
                "average_intake": _round(inference.average_intake, 0),
                "kcal_per_kg": round(inference.kcal_per_kg),
                "r2": round(inference.r2, 3),
                "days_of_data": inference.days_of_data,
                "is_reliable": inference.is_reliable,
                "trend_strength": strength,
                "trend_direction": direction,
            },
            "human_summary": (
                f"{inference.weight_change_rate * 7:+.2f} kg/week, "
                f"maintenance ~{inference.maintenance_calories:.0f} kcal/day"
            ),
        })
        return

    level = f"{state.confidence.value:.0%}"
    low, high = inference.weight_change_rate_ci
    m_low, m_high = inference.confidence_interval
    console.print("[bold]Weight Trend[/bold]")
    console.print(
        f"  Rate: {inference.weight_change_rate * 7:+.2f} kg/week "
        f"({level} CI {low * 7:+.2f} to {high * 7:+.2f})"
    )
    console.print(f"  Energy balance: {inference.surplus_deficit:+.0f} kcal/day")
    if inference.average_intake is not None:
        console.print(f"  Average intake: {inference.average_intake:.0f} kcal/day")
    console.print(
        f"  [bold]Maintenance: {inference.maintenance_calories:.0f} kcal/day[/bold] "
        f"({level} CI {m_low:.0f} to {m_high:.0f})"
    )
    console.print(f"  kcal/kg used: {inference.kcal_per_kg:.0f}")
    console.print(f"  R²: {inference.r2:.1%} ({strength} trend, {direction})")
    console.print(f"  Days of data: {inference.days_of_data:.0f}")
    if not inference.is_reliable:
        console.print("[yellow]Less than 14 days of data; treat these numbers as rough.[/yellow]")


@stats_app.command("empirical")
def stats_empirical(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Personal kcal/kg and maintenance from calorie/weight intervals."""
    from kcalfit.tracking.summary import fat_lean_split

    _, state = load_state("stats empirical", json_output)
    estimate = analyze(state).empirical

    split = None
    if estimate.empirical is not None:
        split = fat_lean_split(estimate.empirical, estimate.empirical_ci)

    if estimate.intervals >= 6:
        quality = "Good coverage for kcal/kg estimate."
    elif estimate.intervals >= 3:
        quality = "Fair coverage; expect wider uncertainty."
    else:
        quality = "Low coverage; kcal/kg is a rough guess."

    if json_output:
        output_json({
            "success": True,
            "command": "stats empirical",
            "data": {
                "kcal_per_kg": _round(estimate.empirical, 0),
                "kcal_per_kg_ci": _round_pair(estimate.empirical_ci, 0),
                "maintenance_calories": _round(estimate.maintenance, 0),
                "r2": _round(estimate.r2, 3),
                "intervals": estimate.intervals,
                "stability": estimate.stability.value,
                "fat_share": _round(split.fat, 3) if split else None,
                "lean_share": _round(split.lean, 3) if split else None,
            },
            "human_summary": (
                f"{estimate.empirical:.0f} kcal/kg ({estimate.stability.value})"
                if estimate.empirical is not None
                else f"Not enough calorie data ({estimate.intervals} intervals)"
            ),
        })
        return

    console.print("[bold]Empirical kcal/kg[/bold]")
    if estimate.empirical is None:
        console.print(f"  Not enough calorie data ({estimate.intervals} intervals). {quality}")
        return

    colors = {"stable": "green", "noisy": "yellow", "insufficient": "red"}
    color = colors[estimate.stability.value]
    console.print(
        f"  kcal/kg: {estimate.empirical:.0f} [{color}]({estimate.stability.value})[/{color}]"
    )
    if estimate.empirical_ci is not None:
        console.print(f"  CI: {estimate.empirical_ci[0]:.0f} to {estimate.empirical_ci[1]:.0f}")
    if estimate.maintenance is not None:
        console.print(f"  Maintenance: {estimate.maintenance:.0f} kcal/day")
    if estimate.r2 is not None:
        console.print(f"  R²: {estimate.r2:.1%}")
    console.print(f"  Intervals: {estimate.intervals}. {quality}")
    if split is not None:
        console.print(f"  Weight change is ~{split.fat:.0%} fat / {split.lean:.0%} lean")


@stats_app.command("notice")
def stats_notice(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Check whether logged intake explains the observed weight trend."""
    from kcalfit.tracking.notice import reference_maintenance

    _, state = load_state("stats notice", json_output)
    result = analyze(state)
    notice = result.notice

    if notice is not None:
        status, summary = "notice", notice.message
    elif reference_maintenance(result.empirical, state.maintenance_calories) is None:
        status = "needs_maintenance"
        summary = (
            "No maintenance baseline to judge intake against. Set one with "
            "'kcalfit profile set --maintenance <kcal>' or log more varied intake."
        )
    else:
        status = "no_notice"
        summary = "Weight trend matches logged intake (or there is too little data to tell)"

    if json_output:
        output_json({
            "success": True,
            "command": "stats notice",
            "data": {
                "status": status,
                "notice": None if notice is None else {
                    "direction": notice.direction.value,
                    "suggested_adjustment": notice.suggested_adjustment,
                    "observed_rate": round(notice.observed_rate, 4),
                    "expected_rate": round(notice.expected_rate, 4),
                    "average_intake": round(notice.average_intake),
                    "maintenance_calories": round(notice.maintenance_calories),
                    "kcal_per_kg": round(notice.kcal_per_kg),
                    "message": notice.message,
                },
            },
            "human_summary": summary,
        })
        return

    if notice is None:
        color = "yellow" if status == "needs_maintenance" else "green"
        console.print(f"[{color}]{summary}[/{color}]")
        return

    console.print(f"[yellow]{notice.message}[/yellow]")
    console.print(
        f"  Observed: {notice.observed_rate * 7:+.2f} kg/week, "
        f"expected: {notice.expected_rate * 7:+.2f} kg/week"
    )
    console.print(
        f"  Average intake {notice.average_intake:.0f} vs maintenance "
        f"{notice.maintenance_calories:.0f} kcal/day"
    )


@stats_app.command("body")
def stats_body(
    limit: int = typer.Option(10, "--limit", "-n", help="Rows to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Estimated body composition; commits any new calibration."""
    from kcalfit.tracking.summary import body_fat_progress, latest_measurement_value

    store, state = load_state("stats body", json_output)
    if state.starting_body_fat is None:
        fail(
            "stats body",
            "Starting body fat is not set",
            json_output,
            "Set it with: kcalfit profile set --starting-body-fat <percent>",
        )
    require_entries(state, "stats body", json_output, minimum=1)

    updated, result = analyze_to_fixed_point(state)
    committed = updated.calibration != state.calibration
    if committed:
        store.save_settings(updated)

    estimates = result.body_composition.estimates
    latest = result.body_composition.latest
    progress = body_fat_progress(
        updated.starting_body_fat,
        updated.goal_body_fat,
        latest_measurement_value(updated.measurements, "body_fat"),
    )
    calibration = updated.calibration

    if json_output:
        output_json({
            "success": True,
            "command": "stats body",
            "data": {
                "estimates": [
                    {
                        "date": e.date.isoformat(),
                        "weight": e.weight,
                        "body_fat": round(e.body_fat_percentage, 2),
                        "body_fat_ci": _round_pair(e.body_fat_ci),
                        "fat_mass": round(e.fat_mass, 2),
                        "lean_mass": round(e.lean_mass, 2),
                        "is_estimated": e.is_estimated,
                    }
                    for e in estimates[-limit:]
                ],
                "calibration_factor": calibration.to_dict(),
                "calibration_committed": committed,
                "body_fat_progress": round(progress, 1),
            },
            "human_summary": (
                f"Body fat ~{latest.body_fat_percentage:.1f}% "
                f"({latest.fat_mass:.1f} kg fat, {latest.lean_mass:.1f} kg lean)"
                if latest
                else "No estimates"
            ),
        })
        return

    table = Table(title="Body Composition")
    table.add_column("Date", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Body fat %", justify="right")
    table.add_column("Range", justify="right", style="dim")
    table.add_column("Fat kg", justify="right")
    table.add_column("Lean kg", justify="right")
    table.add_column("", justify="center")

    for e in estimates[-limit:]:
        table.add_row(
            e.date.isoformat(),
            f"{e.weight:.1f}",
            f"{e.body_fat_percentage:.1f}",
            f"{e.body_fat_ci[0]:.1f} to {e.body_fat_ci[1]:.1f}",
            f"{e.fat_mass:.1f}",
            f"{e.lean_mass:.1f}",
            "est" if e.is_estimated else "[green]measured[/green]",
        )

    console.print(table)
    console.print(
        f"Calibration: muscle gain {calibration.muscle_gain_factor:.2f}, "
        f"fat loss {calibration.fat_loss_factor:.2f}"
        + (" [green](updated)[/green]" if committed else "")
    )
    if updated.goal_body_fat is not None:
        console.print(f"Body fat goal progress: {progress:.1f}%")


@stats_app.command("coverage")
def stats_coverage(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Data coverage and goal progress."""
    from kcalfit.tracking.summary import (
        coverage,
        latest_measurement_value,
        weight_progress,
    )

    _, state = load_state("stats coverage", json_output)
    report = coverage(state.entries, state.measurements, today=date.today())
    progress = weight_progress(state.starting_weight, state.goal_weight, state.current_weight)
    goals = {
        metric: {
            "goal": goal,
            "latest": latest_measurement_value(state.measurements, metric),
        }
        for metric, goal in sorted(state.measurement_goals.items())
    }

    if json_output:
        output_json({
            "success": True,
            "command": "stats coverage",
            "data": {
                "weight_days": report.weight_days,
                "calorie_intervals": report.calorie_intervals,
                "last_body_fat_age": report.last_body_fat_age,
                "weight_progress": round(progress, 1),
                "measurement_goals": goals,
            },
            "human_summary": (
                f"{report.weight_days} weigh-ins in the last 30 days, "
                f"{report.calorie_intervals} calorie intervals"
            ),
        })
        return

    age = "none" if report.last_body_fat_age is None else f"{report.last_body_fat_age}d ago"
    console.print("[bold]Coverage[/bold]")
    console.print(f"  Weigh-ins (last 30 days): {report.weight_days}")
    console.print(f"  Calorie intervals:        {report.calorie_intervals}")
    console.print(f"  Last body-fat reading:    {age}")
    if state.goal_weight is not None:
        console.print(f"  Weight goal progress:     {progress:.1f}%")
    for metric, values in goals.items():
        latest = values["latest"]
        current = "-" if latest is None else f"{latest:g}"
        console.print(f"  {metric.capitalize()}: {current} / goal {values['goal']:g} cm")


# ============================================================================
# Simulation
# ============================================================================


@app.command()
def simulate(
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Replace all data with a simulated 18-month bulking journey."""
    from kcalfit.tracking.simulate import simulate_bulk_journey

    if not yes and not typer.confirm("This will overwrite all your current entries. Continue?"):
        raise typer.Exit(0)

    store = get_store()
    state = simulate_bulk_journey(seed)
    store.save(state)

    summary = (
        f"Simulated {len(state.entries)} weigh-ins and "
        f"{len(state.measurements)} body-fat measurements"
    )
    if json_output:
        output_json({
            "success": True,
            "command": "simulate",
            "data": {
                "entries": len(state.entries),
                "measurements": len(state.measurements),
                "first_date": state.entries[0].date.isoformat() if state.entries else None,
                "last_date": state.entries[-1].date.isoformat() if state.entries else None,
            },
            "human_summary": summary,
        })
    else:
        console.print(f"[green]{summary}[/green]")


if __name__ == "__main__":
    app()
