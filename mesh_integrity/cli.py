#!/usr/bin/env python3
"""
Command-line interface for the mesh integrity checker.

This module handles all the CLI-specific stuff: argument parsing, pretty
printing, error display, etc. The actual checking logic lives in
mesh_integrity.py and can be imported/used programmatically.
"""

import argparse
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Any, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.panel import Panel
from rich.table import Table
from rich import box

from .constants import (
    DEFAULT_WORKERS,
    MAX_REPORTED_POINTS,
    SUMMARY_FILE_PREFIX,
    SUPPORTED_MESH_EXTENSIONS,
    __version__
)
from .config import CheckConfig
from .mesh_integrity import check_mesh_file

# Create Rich consoles for output and errors
console = Console()
error_console = Console(stderr=True)


def is_mesh_file(filepath: Path) -> bool:
    """Check if a file has a supported mesh extension."""
    return filepath.suffix.lower() in SUPPORTED_MESH_EXTENSIONS


def configure_logging(verbose: bool) -> None:
    """Route this package's log records to stderr when --verbose is given."""
    package_logger = logging.getLogger('mesh_integrity')
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Add handler only if one doesn't exist
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('   [%(name)s] %(levelname)s: %(message)s'))
        package_logger.addHandler(handler)


def generate_batch_summary(
    results: Dict[str, List[Dict[str, Any]]],
    output_folder: Path,
    start_time: datetime,
    end_time: datetime
) -> str:
    """
    Generate a Markdown summary of batch check results.

    Args:
        results: Dictionary with 'closed', 'broken' and 'failed' lists
        output_folder: Where to write the summary file
        start_time: When batch processing started
        end_time: When batch processing finished

    Returns:
        Path to the generated summary file
    """
    output_folder.mkdir(parents=True, exist_ok=True)
    timestamp = start_time.strftime("%Y%m%d%H%M%S")
    summary_path = output_folder / f"{SUMMARY_FILE_PREFIX}_{timestamp}.md"

    duration = end_time - start_time
    total = len(results['closed']) + len(results['broken']) + len(results['failed'])

    lines = []
    lines.append("# Mesh Integrity Summary")
    lines.append(f"**Date:** {start_time.strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append(f"**Duration:** {duration.total_seconds():.1f} seconds")
    lines.append("")

    lines.append("## Results Overview")
    lines.append(f"- ✅ **Closed:** {len(results['closed'])} files")
    lines.append(f"- ❌ **Broken / undetermined:** {len(results['broken'])} files")
    lines.append(f"- ⚠️  **Failed to load:** {len(results['failed'])} files")
    lines.append(f"- 📁 **Total checked:** {total} files")
    lines.append("")

    if results['closed']:
        lines.append("## ✅ Closed Meshes")
        lines.append("")
        lines.append("| File | Triangles | Bad Normals | Time |")
        lines.append("|------|-----------|-------------|------|")
        for item in results['closed']:
            lines.append(
                f"| {item['input_file']} | {item['num_triangles']} | "
                f"{item['bad_normals']} | {item['elapsed_seconds']:.2f}s |"
            )
        lines.append("")

    if results['broken']:
        lines.append("## ❌ Broken Meshes")
        lines.append("")
        for item in results['broken']:
            lines.append(f"### {item['input_file']}")
            lines.append(f"**Verdict:** {item['verdict']}")
            if item['offending_index'] is not None:
                lines.append(
                    f"**First offending triangle:** #{item['offending_index']} "
                    f"({item['num_intersections']} intersections)"
                )
            if item['unresolved']:
                lines.append(f"**Undetermined triangles:** {item['unresolved']}")
            lines.append("")

    if results['failed']:
        lines.append("## ⚠️  Failed Files")
        lines.append("")
        for item in results['failed']:
            lines.append(f"### {item['input_file']}")
            lines.append(f"**Error:** {item['error']}")
            lines.append("")

    summary_path.write_text('\n'.join(lines), encoding='utf-8')

    return str(summary_path)


def process_batch(
    input_folder: Path,
    config: CheckConfig,
    recurse: bool = False
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Check every mesh file in a folder.

    Args:
        input_folder: Folder containing mesh files
        config: CheckConfig object with check parameters
        recurse: If True, also check files in subfolders

    Returns:
        Dictionary with 'closed', 'broken' and 'failed' results
    """
    results = {
        'closed': [],
        'broken': [],
        'failed': []
    }

    if recurse:
        mesh_files = [f for f in input_folder.rglob('*') if f.is_file() and is_mesh_file(f)]
    else:
        mesh_files = [f for f in input_folder.iterdir() if f.is_file() and is_mesh_file(f)]

    if not mesh_files:
        console.print(f"[yellow]⚠️  No mesh files found in {input_folder}[/yellow]")
        return results

    console.print(f"[cyan]📁 Found {len(mesh_files)} mesh file(s) to check[/cyan]")
    console.print()

    for i, input_path in enumerate(sorted(mesh_files), start=1):
        input_display = str(input_path.relative_to(input_folder)) if recurse else input_path.name
        console.print(f"[cyan][{i}/{len(mesh_files)}] Checking: {input_display}[/cyan]")

        try:
            stats = check_mesh_file(str(input_path), config=config)
        except Exception as e:
            results['failed'].append({
                'input_file': input_display,
                'error': str(e)
            })
            error_console.print(f"[red]   ❌ Failed: {e}[/red]")
            console.print()
            continue

        result = stats['result']
        entry = {
            'input_file': input_display,
            'num_triangles': stats['num_triangles'],
            'bad_normals': stats['bad_normals'],
            'elapsed_seconds': stats['elapsed_seconds'],
            'verdict': result.verdict,
            'offending_index': result.offending_index,
            'num_intersections': len(result.intersections),
            'unresolved': list(result.unresolved_indices),
        }
        if result.is_closed:
            results['closed'].append(entry)
            console.print(f"[green]   ✅ Closed: {stats['num_triangles']} triangles[/green]")
        else:
            results['broken'].append(entry)
            console.print(f"[red]   ❌ {result.verdict.capitalize()}[/red]")

        console.print()

    return results


def print_check_result(stats: Dict[str, Any]) -> None:
    """Pretty-print the outcome of a single-file check."""
    result = stats['result']

    if result.is_closed:
        console.print(Panel.fit(
            "[bold green]✅ Mesh is closed (watertight)[/bold green]",
            border_style="green"
        ))
    elif result.verdict == "broken":
        console.print(Panel.fit(
            "[bold red]❌ Broken mesh!!![/bold red]",
            border_style="red"
        ))
    else:
        console.print(Panel.fit(
            "[bold yellow]⚠️  Integrity undetermined (numerical degeneracy)[/bold yellow]",
            border_style="yellow"
        ))

    stats_table = Table(show_header=False, box=box.SIMPLE, padding=(0, 1))
    stats_table.add_column("Label", style="bold cyan")
    stats_table.add_column("Value", style="white")
    stats_table.add_row("File:", f"{stats['input_path']} ({stats['file_size']})")
    stats_table.add_row("Format:", stats['source_format'])
    if stats['header']:
        stats_table.add_row("Header:", stats['header'])
    stats_table.add_row("Triangles:", str(stats['num_triangles']))
    stats_table.add_row("Probes evaluated:", str(result.stats.get('probes_evaluated', 0)))
    if stats['bad_normals'] > 0:
        stats_table.add_row("Incorrect normals:", f"[yellow]{stats['bad_normals']}[/yellow]")
    if result.skipped_indices:
        stats_table.add_row("Zero-area triangles:", str(len(result.skipped_indices)))
    if result.unresolved_indices:
        stats_table.add_row("Undetermined triangles:", str(result.unresolved_indices))
    stats_table.add_row("Time:", f"{stats['elapsed_seconds']:.2f}s")
    console.print(stats_table)

    if result.offending_triangle is not None:
        console.print(f"[bold red]Offending triangle #{result.offending_index}:[/bold red] {result.offending_triangle}")
        points_table = Table(title="Intersections along probe ray", box=box.ROUNDED, header_style="bold cyan")
        points_table.add_column("#", style="dim")
        points_table.add_column("Point", style="white")
        for i, point in enumerate(result.intersections[:MAX_REPORTED_POINTS]):
            points_table.add_row(str(i), str(point))
        console.print(points_table)
        if len(result.intersections) > MAX_REPORTED_POINTS:
            console.print(f"[dim]   ... {len(result.intersections) - MAX_REPORTED_POINTS} more[/dim]")
        if len(result.odd_indices) > 1:
            console.print(f"[red]   {len(result.odd_indices)} triangles have odd parity in total[/red]")

    cross_check = stats.get('cross_check')
    if cross_check is not None:
        console.print()
        cc_table = Table(title="trimesh cross-check", box=box.ROUNDED, show_header=True, header_style="bold cyan")
        cc_table.add_column("Check", style="bold yellow")
        cc_table.add_column("Value", style="white")
        for key, value in cross_check.stats.items():
            cc_table.add_row(key, str(value))
        console.print(cc_table)
        for error in cross_check.errors:
            console.print(f"[red]   ❌ {error}[/red]")
        for warning in cross_check.warnings:
            console.print(f"[yellow]   ⚠️  {warning}[/yellow]")

    console.print()


def build_parser() -> argparse.ArgumentParser:
    """Set up the command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Check triangle meshes (STL and friends) for watertightness",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Single files
  %(prog)s bunny.stl
  %(prog)s part.stl bracket.stl --workers 4
  %(prog)s scan.obj --cross-check --find-all

  # Batch mode
  %(prog)s --batch --batch-input meshes/
  %(prog)s --batch --batch-input scans/ --recurse --summary-dir reports/

For every triangle a probe ray is cast from just outside its face through
the solid. On a closed mesh every such ray crosses the surface an even
number of times; the first triangle with an odd count is reported.
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show program's version number and exit"
    )

    parser.add_argument(
        "mesh_files",
        type=str,
        nargs='*',
        help="Mesh files to check (binary/ASCII STL, OBJ, PLY, ...) - not used in batch mode"
    )

    parser.add_argument(
        "--batch",
        action="store_true",
        help="Enable batch mode to check every mesh file in a folder"
    )

    parser.add_argument(
        "--batch-input",
        type=str,
        default="batch/input",
        help="Input folder for batch mode (default: batch/input)"
    )

    parser.add_argument(
        "--summary-dir",
        type=str,
        default=None,
        help="Where batch mode writes its Markdown summary (default: the input folder)"
    )

    parser.add_argument(
        "--recurse",
        action="store_true",
        help="Check subfolders recursively in batch mode"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Number of threads casting probe rays (default: {DEFAULT_WORKERS})"
    )

    parser.add_argument(
        "--find-all",
        action="store_true",
        help="Keep going after the first odd-parity triangle and count every offender"
    )

    parser.add_argument(
        "--trust-normals",
        action="store_true",
        help="Use the normals stored in binary STL files instead of recomputing them from winding"
    )

    parser.add_argument(
        "--cross-check",
        action="store_true",
        help="Also run trimesh's edge-topology checks (boundary edges, Euler number, volume)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging (perturbation retries, loader decisions)"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    if args.batch:
        if args.mesh_files:
            error_console.print("[red]❌ Error: Don't specify mesh files when using --batch mode[/red]")
            error_console.print("[red]   Use --batch-input to specify the input folder instead[/red]")
            sys.exit(1)
    else:
        if not args.mesh_files:
            error_console.print("[red]❌ Error: At least one mesh file is required (or use --batch mode)[/red]")
            parser.print_help()
            sys.exit(1)

    try:
        config = CheckConfig(
            workers=args.workers,
            find_all=args.find_all,
            trust_declared_normals=args.trust_normals,
            cross_check=args.cross_check
        )
    except ValueError as e:
        error_console.print(f"[red]❌ Error: Invalid configuration: {e}[/red]")
        sys.exit(1)

    # =========================================================================
    # BATCH MODE
    # =========================================================================
    if args.batch:
        console.print(Panel.fit(
            "[bold cyan]🔍 Mesh Integrity Checker - BATCH MODE[/bold cyan]",
            border_style="cyan"
        ))
        console.print()

        input_folder = Path(args.batch_input)
        if not input_folder.exists():
            error_console.print(f"[red]❌ Error: Input folder not found: {input_folder}[/red]")
            sys.exit(1)
        if not input_folder.is_dir():
            error_console.print(f"[red]❌ Error: Input path is not a directory: {input_folder}[/red]")
            sys.exit(1)

        summary_folder = Path(args.summary_dir) if args.summary_dir else input_folder

        console.print(f"[cyan]📂 Input folder:  {input_folder}[/cyan]")
        console.print(f"[cyan]🔄 Recursive:     {args.recurse}[/cyan]")
        console.print(f"[cyan]⚙️  Workers:       {config.workers}[/cyan]")
        console.print()

        start_time = datetime.now()
        results = process_batch(input_folder, config, recurse=args.recurse)
        end_time = datetime.now()

        summary_path = generate_batch_summary(results, summary_folder, start_time, end_time)

        console.print(Panel.fit(
            "[bold green]✅ Batch check complete![/bold green]",
            border_style="green"
        ))
        console.print(f"[bold]📊 Results:[/bold]")
        console.print(f"   [green]✅ Closed:  {len(results['closed'])} files[/green]")
        console.print(f"   [red]❌ Broken:  {len(results['broken'])} files[/red]")
        console.print(f"   [yellow]⚠️  Failed:  {len(results['failed'])} files[/yellow]")
        console.print()
        console.print(f"[cyan]📄 Summary: {summary_path}[/cyan]")
        console.print()

        if results['broken'] or results['failed']:
            sys.exit(1)

        return

    # =========================================================================
    # FILE MODE
    # =========================================================================
    console.print(Panel.fit(
        "[bold cyan]🔍 Mesh Integrity Checker[/bold cyan]",
        border_style="cyan"
    ))
    console.print()

    config_table = Table(title="Configuration", box=box.ROUNDED, show_header=True, header_style="bold cyan")
    config_table.add_column("Parameter", style="bold yellow")
    config_table.add_column("Value", style="white")
    config_table.add_row("Files", str(len(args.mesh_files)))
    config_table.add_row("Workers", str(config.workers))
    config_table.add_row("Find All Defects", "Enabled" if config.find_all else "Disabled")
    config_table.add_row("Normals", "Declared (from file)" if config.trust_declared_normals else "Recomputed from winding")
    config_table.add_row("trimesh Cross-check", "Enabled" if config.cross_check else "Disabled")
    console.print(config_table)
    console.print()

    all_closed = True
    for mesh_file in args.mesh_files:
        input_path = Path(mesh_file)
        if not input_path.exists():
            error_console.print(f"[red]❌ Error: Input file not found: {mesh_file}[/red]")
            all_closed = False
            continue

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=True
        ) as progress:

            load_task = progress.add_task(f"[cyan]📁 Loading {input_path.name}...", total=None)
            check_task = None

            def progress_callback(stage: str, message: str):
                nonlocal check_task

                if stage == 'load':
                    progress.update(load_task, description=f"[cyan]📁 {message}")
                elif stage == 'check':
                    # Messages look like "Triangle 12/345"
                    try:
                        done, total = (int(n) for n in message.split()[1].split("/"))
                    except (IndexError, ValueError):
                        return
                    if check_task is None:
                        progress.update(load_task, completed=True)
                        check_task = progress.add_task("[magenta]🔦 Casting probe rays...", total=total)
                    progress.update(check_task, completed=done)
                elif stage == 'cross_check':
                    progress.add_task(f"[blue]🧮 {message}", total=None)

            try:
                stats = check_mesh_file(str(input_path), config=config, progress_callback=progress_callback)
            except FileNotFoundError as e:
                error_console.print(f"\n[red]❌ Error: {e}[/red]")
                all_closed = False
                continue
            except ValueError as e:
                error_console.print(f"\n[red]❌ Could not read {input_path.name}: {e}[/red]")
                all_closed = False
                continue
            except Exception as e:
                error_console.print(f"\n[red]❌ Unexpected error: {e}[/red]")
                import traceback
                traceback.print_exc()
                all_closed = False
                continue

        print_check_result(stats)
        if not stats['result'].is_closed:
            all_closed = False

    if not all_closed:
        sys.exit(1)


if __name__ == "__main__":
    main()
