#!/usr/bin/env python3
"""
Wizard Demo: Build → Analyze → Run → Submit

Shows the full workflow:
1. Build the example plan wizard
2. Analyze the graph
3. Drive a run the way a renderer would (including a failed validation and a step back)
4. Submit and export the graph to YAML
"""

from wizgraph.analyzer import analyze_graph
from wizgraph.config import WizardOptions
from wizgraph.engine import StepKind
from wizgraph.examples import build_plan_wizard
from wizgraph.logging_setup import init_logger


def print_report(report):
    """Pretty-print a GraphReport."""
    print()
    print("=" * 70)
    print("GRAPH ANALYSIS REPORT")
    print("=" * 70)
    print()

    print("📊 BASIC METRICS")
    print(f"  Total Nodes:           {report.total_nodes}")
    print(f"  Total Connections:     {report.total_connections}")
    for node_type, count in sorted(report.nodes_by_type.items()):
        print(f"    {node_type}: {count}")
    print()

    print("🔗 GRAPH STRUCTURE")
    print(f"  Entry Point:           {report.entry_point}")
    print(f"  Exit Points:           {report.exit_points}")
    print(f"  Unreachable Nodes:     {sorted(report.unreachable_nodes) if report.unreachable_nodes else 'None'}")
    print(f"  Has Cycles:            {'YES' if report.has_cycles else 'NO'}")
    print()

    print("✅ COVERAGE METRICS")
    print(f"  Fields with Validation:{report.fields_with_validation}/{report.form_fields}")
    print(f"  Validation Coverage:   {report.validation_coverage_percent:.1f}%")
    print()

    if report.warnings:
        print("⚠️  WARNINGS")
        for i, warning in enumerate(report.warnings, 1):
            print(f"  {i}. {warning}")
    else:
        print("✨ NO WARNINGS - Graph looks clean!")
    print()


def show(view):
    if view.kind == StepKind.NODE:
        marker = f"[{view.progress.index + 1}/{len(view.progress.path)}]" if view.progress.path else ""
        print(f"   → {view.node.id} ({view.node.type.value}) {marker} value={view.value!r}")
    else:
        print(f"   → {view.kind.value}")


def main():
    options = WizardOptions.from_env()
    init_logger(level=options.log_level)
    options.on_submit = lambda data: print(f"   ✓ on_submit received {len(data)} fields")

    wizard = build_plan_wizard(options)

    # =========================================================================
    # STEP 1: Analyze
    # =========================================================================
    print_report(analyze_graph(wizard.nodes, wizard.connections))

    # =========================================================================
    # STEP 2: Run
    # =========================================================================
    print("RUNNING WIZARD...")
    show(wizard.start())

    result = wizard.advance("")
    print(f"   ✗ empty answer rejected: {result.errors}")

    show(wizard.advance("pro").step)

    show(wizard.retreat())
    show(wizard.advance("basic").step)
    wizard.engine.toggle_option("domain")
    show(wizard.advance().step)

    print("\nSUMMARY")
    for item in wizard.current_step().summary:
        print(f"   {item.label}: {item.display}")

    # =========================================================================
    # STEP 3: Submit
    # =========================================================================
    print("\nSUBMITTING...")
    exported = wizard.submit()
    for name, value in exported.items():
        print(f"   {name} = {value!r}")

    with open("example_wizard_output.yaml", "w") as f:
        f.write(wizard.to_yaml())
    print("\n✅ Wizard exported to example_wizard_output.yaml")


if __name__ == "__main__":
    main()
