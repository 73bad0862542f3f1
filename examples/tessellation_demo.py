#!/usr/bin/env python3
"""
Demonstration of the tessellation pipeline.

This script shows:
1. A hexagonal border split into clipped Voronoi cells
2. Stage snapshots delivered to an observer
3. Vertex relaxation
4. A river traced across the cells
5. Nested tessellation
"""

from py_tessellate.config import configure_logging
from py_tessellate.core import Circle, Point, run_pipeline, tessellate_nested
from py_tessellate.core.analysis import coverage_report
from py_tessellate.core.relaxation import relax_polygons
from py_tessellate.core.rivers import generate_river


def main():
    configure_logging("WARNING", "plain")
    border = Circle(Point(400, 300), 300).to_polygon(6)

    print("=== Tessellation Demo ===\n")

    print("1. Tessellating a hexagon with 40 interior points...")
    snapshots = []
    result = run_pipeline(border, 40, seed="demo_seed", observer=snapshots.append)
    print(f"   - Cells: {len(result.polygons)}")
    print(f"   - Skipped points: {len(result.skipped_points)}")
    print(f"   - Elapsed: {result.elapsed_seconds:.3f}s")

    print("\n2. Stage snapshots:")
    for snapshot in snapshots:
        print(f"   - {snapshot.stage.value:<12} points={len(snapshot.points):<5} "
              f"segments={len(snapshot.segments):<5} polygons={len(snapshot.polygons)}")

    report = coverage_report(result.polygons, result.border)
    print(f"\n   Border area {report.border_area:.2f}, cell area {report.total_area:.2f}, "
          f"partition: {report.is_partition()}")

    print("\n3. Relaxing cell vertices...")
    relaxed = relax_polygons(result.polygons, result.border)
    print(f"   - Area after relaxation: {sum(p.signed_area for p in relaxed):.2f}")

    print("\n4. Tracing a river...")
    river = generate_river(relaxed, result.border, seed="demo_seed")
    print(f"   - Crossed edges: {len(river.crossed_edges)}")
    print(f"   - Path points: {len(river.path)}, length {river.length:.2f}")

    print("\n5. Nested tessellation (5 cells, then 5 per cell)...")
    nested = tessellate_nested(border, [5, 5], seed="demo_seed")
    print(f"   - Cells: {len(nested)}")


if __name__ == "__main__":
    main()
