#!/usr/bin/env python3
"""
tapeplace CLI

Command-line interface for the copper tape placement and routing engine.

Usage:
    tapeplace connect <design.yaml>
    tapeplace place <design.yaml> [options]
    tapeplace route <project.yaml> [options]
    tapeplace check <project.yaml> [--rules NAME]
    tapeplace rules
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from .board.abstraction import Arrangement, Connection, Project
from .board.project_file import load_project, save_project
from .catalog import get_pad_label
from .connections import build_nets, expand_components, infer_connections
from .exceptions import TapePlaceError

logger = logging.getLogger(__name__)


def _design_connections(project: Project) -> List[Connection]:
    """The project's own connections plus whatever inference adds."""
    from .placement import bind_connections

    expanded = expand_components(project.assembly)
    existing = bind_connections(project.connections, expanded)
    detection = infer_connections(project.assembly, existing)
    return existing + detection.connections


def cmd_connect(args):
    """Print inferred connections for a design."""
    project = load_project(args.design)
    detection = infer_connections(project.assembly, project.connections)
    by_id = {comp.id: comp for comp in detection.components}

    print(f"Design: {project.name} ({len(detection.components)} components)")
    for conn in detection.connections:
        from_comp = by_id[conn.from_ref.component_id]
        to_comp = by_id[conn.to_ref.component_id]
        print(f"  {conn.id}: {from_comp.id} [{get_pad_label(from_comp.type, conn.from_ref.pad_index)}]"
              f" -> {to_comp.id} [{get_pad_label(to_comp.type, conn.to_ref.pad_index)}]"
              f"  net {conn.net_name}")

    stats = detection.stats
    print(f"\nPower: {stats['power']}  Ground: {stats['ground']}  Signal: {stats['signal']}")
    if stats["unknown_components"]:
        print(f"Unknown components: {', '.join(stats['unknown_components'])}")
    return 0


def cmd_place(args):
    """Generate and rank placements for a design."""
    from .api import place

    project = load_project(args.design)
    if not project.assembly:
        print("Error: design has no assembly entries")
        return 1

    connections = _design_connections(project)
    strategies = [args.strategy] if args.strategy else None

    print(f"Placing {sum(a.quantity for a in project.assembly)} components "
          f"on a {project.board.width:.0f} x {project.board.height:.0f} mm board...")
    arrangements = place(project.board, project.assembly, connections,
                         seed=args.seed, strategies=strategies, iterations=args.iterations)
    if not arrangements:
        print("Error: no placeable components (unknown footprints?)")
        return 1

    for rank, arr in enumerate(arrangements, 1):
        m = arr.metrics
        flag = "" if arr.valid else "  [overlaps]"
        print(f"  {rank}. {arr.name:<12} score {arr.score:>3}  "
              f"length {m.total_route_length:.0f}mm  crossings {m.route_crossings}  "
              f"util {m.board_utilization:.2f}  sym {m.symmetry_score:.2f}{flag}")

    best = arrangements[0]
    placed = Project.from_arrangement(best, project.board, connections, name=project.name)
    placed.tape = project.tape
    placed.rules = project.rules
    placed.assembly = project.assembly
    placed.nets = build_nets(connections, best.components)

    output_path = Path(args.output) if args.output else Path(args.design).with_suffix(".placed.yaml")
    save_project(placed, output_path)
    print(f"\nSaved {best.name} arrangement to: {output_path}")
    return 0


def cmd_route(args):
    """Route the connections of a placed project."""
    from .routing import RouterConfig, route_arrangement

    project = load_project(args.project)
    if not project.components:
        print("Error: project has no placed components (run 'tapeplace place' first)")
        return 1

    connections = project.connections or _design_connections(project)
    arrangement = Arrangement(id="arr_loaded", name=project.name, components=project.components)

    config = RouterConfig()
    if args.width:
        config.route_width = args.width
    routed, report = route_arrangement(arrangement, connections, project.board, config)

    print(f"Routed {report.routed}/{report.total} connections "
          f"(A* {report.methods['astar']}, Manhattan {report.methods['manhattan']}, "
          f"direct {report.methods['direct']})")
    for skipped in report.skipped:
        print(f"  Skipped {skipped.connection_id}: {skipped.reason}")
    if report.unresolved_conflicts:
        print(f"  {len(report.unresolved_conflicts)} crossings left:")
        for a, b in report.unresolved_conflicts[:5]:
            print(f"    - {a} crosses {b}")

    project.routes = routed.routes
    project.connections = list(connections)
    output_path = Path(args.output) if args.output else Path(args.project).with_suffix(".routed.yaml")
    save_project(project, output_path)
    print(f"\nSaved to: {output_path}")
    return 0


def cmd_check(args):
    """Run DRC on a project."""
    from .dfm.profiles import get_rules
    from .validation import DRCChecker

    project = load_project(args.project)
    try:
        rules = get_rules(args.rules) if args.rules else project.rules
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print(f"Running DRC checks ({rules.name} rules)...")
    drc = DRCChecker(project, rules)
    passed, _ = drc.run_checks()
    print(drc.get_summary())
    return 0 if passed else 1


def cmd_rules(args):
    """List DRC rule presets."""
    from .dfm.profiles import get_rules, list_rules

    for name in list_rules():
        rules = get_rules(name)
        print(f"{name:<12} {rules.description}")
        print(f"{'':<12} spacing {rules.min_spacing}mm, wall {rules.min_wall}mm, "
              f"bend {rules.min_bend_radius}mm, pad clearance {rules.min_pad_clearance}mm")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tapeplace",
        description="tapeplace - copper tape circuit board layout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tapeplace connect synth.yaml
  tapeplace place synth.yaml --seed 7 -o synth.placed.yaml
  tapeplace route synth.placed.yaml
  tapeplace check synth.placed.routed.yaml --rules wide_tape
        """,
    )

    parser.add_argument('--version', action='version', version='tapeplace 0.1.0')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    connect_parser = subparsers.add_parser('connect', help='Show inferred connections')
    connect_parser.add_argument('design', help='Design YAML (board + assembly)')

    place_parser = subparsers.add_parser('place', help='Generate placements')
    place_parser.add_argument('design', help='Design YAML (board + assembly)')
    place_parser.add_argument('-o', '--output', help='Output project path')
    place_parser.add_argument('--seed', type=int, default=0, help='Random seed (default: 0)')
    place_parser.add_argument('--iterations', type=int, help='Annealing iterations (default: 500)')
    place_parser.add_argument('--strategy', choices=['grid', 'compact', 'symmetric', 'flow', 'radial'],
                              help='Run a single strategy')

    route_parser = subparsers.add_parser('route', help='Route a placed project')
    route_parser.add_argument('project', help='Placed project YAML')
    route_parser.add_argument('-o', '--output', help='Output project path')
    route_parser.add_argument('--width', type=float, help='Tape width in mm (default: 5)')

    check_parser = subparsers.add_parser('check', help='Run design rule checks')
    check_parser.add_argument('project', help='Project YAML')
    check_parser.add_argument('--rules', help='Rule preset (default: the project\'s own rules)')

    subparsers.add_parser('rules', help='List design rule presets')

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s: %(message)s',
    )

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        'connect': cmd_connect,
        'place': cmd_place,
        'route': cmd_route,
        'check': cmd_check,
        'rules': cmd_rules,
    }

    try:
        return commands[args.command](args)
    except TapePlaceError as e:
        print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
