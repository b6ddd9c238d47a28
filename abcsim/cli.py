"""
abcsim/cli.py - Command Line Interface

Usage:
    abcsim run --preset black_hole --ticks 600 --seed 7
    abcsim run --config params.yaml --receipts receipts.jsonl --export snap.txt
    abcsim presets
    abcsim validate-config params.yaml
    abcsim inspect snap.txt

Exit codes: 0 success, 1 validation failure, 2 fatal error.
"""

import json
import logging
import sys
import warnings
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import config_schema
from .engine import EvolutionEngine, run_simulation
from .export import export_snapshot, generate_report, load_snapshot
from .receipts import StopRule, write_receipt_jsonl
from .types_config import PRESETS, get_preset
from .validation import validate_world

console = Console()


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_next(command: str) -> None:
    console.print(f"\n[dim]Next:[/dim] [cyan]{command}[/cyan]")


def _metrics_table(metrics: dict, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in metrics.items():
        shown = f"{value:.4f}" if isinstance(value, float) else str(value)
        table.add_row(key, shown)
    return table


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """ABC emergence simulator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )


# --- run ---

@main.command("run")
@click.option("--preset", "-p", type=click.Choice(sorted(PRESETS)), default="default")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Parameter file (JSON/YAML)")
@click.option("--ticks", "-t", type=int, default=600, show_default=True)
@click.option("--dt", type=float, default=0.016, show_default=True)
@click.option("--seed", "-s", type=int, default=None)
@click.option("--receipts", "receipts_path", type=click.Path(), help="Write receipts as JSONL")
@click.option("--export", "export_path", type=click.Path(), help="Write a session snapshot")
@click.option("--check", is_flag=True, help="Exit 1 if any invariant is violated")
@click.option("--progress", is_flag=True, help="Show a progress bar")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def run_cmd(
    preset: str,
    config_path: Optional[str],
    ticks: int,
    dt: float,
    seed: Optional[int],
    receipts_path: Optional[str],
    export_path: Optional[str],
    check: bool,
    progress: bool,
    output: str,
) -> None:
    """Run the engine headless for a fixed number of ticks."""
    try:
        if config_path:
            params = config_schema.load_parameters(config_path)
        else:
            params = get_preset(preset)

        if export_path:
            engine = EvolutionEngine(params, seed=seed)
            engine.start()
            for _ in range(ticks):
                engine.step(dt)
            engine.pause()
            Path(export_path).write_text(export_snapshot(engine))
            violations = validate_world(engine.world)
            receipts = list(engine.world.receipts)
            metrics = engine.get_metrics().to_dict()
            used_seed = engine.seed
            report = None
        else:
            result = run_simulation(params, ticks=ticks, dt=dt, seed=seed, trace_every=0, progress=progress)
            violations = result.violations
            receipts = result.receipts
            metrics = result.final_metrics.to_dict()
            used_seed = result.seed
            report = generate_report(result)

        if receipts_path:
            with open(receipts_path, "w") as fh:
                for receipt in receipts:
                    write_receipt_jsonl(receipt, fh)

        if output == "json":
            click.echo(json.dumps({
                "seed": used_seed,
                "ticks": ticks,
                "metrics": metrics,
                "violations": violations,
                "receipt_count": len(receipts),
            }, indent=2))
        else:
            console.print(_metrics_table(metrics, f"Final metrics (seed {used_seed})"))
            if report:
                console.print(Panel(report, title="[bold]Report[/bold]"))
            if violations:
                for v in violations:
                    print_warning(f"Invariant violated: {v['check']}")
            else:
                print_success(f"{ticks} ticks, no invariant violations")
            if export_path:
                print_next(f"abcsim inspect {export_path}")

        if check and violations:
            sys.exit(1)

    except (FileNotFoundError, ValueError, KeyError) as e:
        if output == "json":
            click.echo(json.dumps({"error": str(e)}))
        else:
            print_error(str(e))
        sys.exit(2)


# --- presets ---

@main.command("presets")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def presets_cmd(output: str) -> None:
    """List parameter presets."""
    if output == "json":
        click.echo(json.dumps({name: p.to_dict() for name, p in PRESETS.items()}, indent=2))
        return

    table = Table(title="Presets")
    # Short headers keep the table inside an 80-column terminal
    table.add_column("Name", style="cyan", no_wrap=True, min_width=20)
    table.add_column("n_abc", justify="right")
    table.add_column("density", justify="right")
    table.add_column("mass", justify="right")
    table.add_column("speed", justify="right")
    table.add_column("v", justify="right")
    table.add_column("radioPi", justify="right")
    for name, p in PRESETS.items():
        table.add_row(
            name, str(p.n_abc), f"{p.density:g}", f"{p.central_mass:g}",
            f"{p.time_speed:g}", f"{p.velocity:g}", f"{p.radio_pi:g}",
        )
    console.print(table)


# --- validate-config ---

@main.command("validate-config")
@click.argument("config_path", type=click.Path(exists=True))
@click.option("--strict", is_flag=True, help="Treat warnings as errors")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def validate_config_cmd(config_path: str, strict: bool, output: str) -> None:
    """Validate a parameter file."""
    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                params = config_schema.load_parameters(config_path, strict=strict)
                errors = []
            except ValueError as ve:
                params = None
                errors = [str(ve)]
        warns = [str(w.message) for w in caught if issubclass(w.category, UserWarning)]
        is_valid = not errors

        if output == "json":
            click.echo(json.dumps({
                "path": config_path,
                "valid": is_valid,
                "errors": errors,
                "warnings": warns,
                "parameters": params.to_dict() if params else None,
            }, indent=2))
        else:
            status = "PASSED" if is_valid else "FAILED"
            status_style = "green" if is_valid else "red"
            lines = [f"File: {config_path}", ""]
            if params:
                lines.append(f"n_abc: {params.n_abc}    density: {params.density:g}    radio_pi: {params.radio_pi:g}")
            for err in errors:
                lines.append(f"[red]✗[/red] {err}")
            for warn in warns:
                lines.append(f"[yellow]⚠[/yellow] {warn}")
            console.print(Panel(
                "\n".join(lines),
                title=f"[bold {status_style}]Config Validation: {status}[/bold {status_style}]",
                border_style=status_style,
            ))
            if is_valid:
                print_next(f"abcsim run --config {config_path}")

        if not is_valid:
            sys.exit(1)

    except FileNotFoundError:
        if output == "json":
            click.echo(json.dumps({"error": "config not found", "path": config_path}))
        else:
            print_error(f"Config file not found: {config_path}")
        sys.exit(2)


# --- inspect ---

@main.command("inspect")
@click.argument("snapshot_path", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def inspect_cmd(snapshot_path: str, output: str) -> None:
    """Verify and display a session snapshot."""
    try:
        document = load_snapshot(Path(snapshot_path).read_text())
    except StopRule as e:
        if output == "json":
            click.echo(json.dumps({"valid": False, "error": str(e)}))
        else:
            print_error(str(e))
        sys.exit(1)
    except ValueError as e:
        if output == "json":
            click.echo(json.dumps({"error": str(e)}))
        else:
            print_error(str(e))
        sys.exit(2)

    payload = document["payload"]
    if output == "json":
        click.echo(json.dumps({"valid": True, **document}, indent=2))
        return

    console.print(Panel(
        f"Version: {document['version']}\nTimestamp: {document['timestamp']}\n"
        f"Signature: {document['signature'][:16]}...",
        title="[bold green]Snapshot: VERIFIED[/bold green]",
        border_style="green",
    ))
    console.print(_metrics_table(payload["parameters"], "Parameters"))
    console.print(_metrics_table(payload["metrics"], "Metrics"))


if __name__ == "__main__":
    main()
