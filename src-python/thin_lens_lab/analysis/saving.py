"""
Copyright 2026 thin-lens-lab authors and contributors

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.

===============================================================================
EXPORT UTILITIES
===============================================================================
- save_render(): write an SVG drawing with a counter-numbered filename and
  return a JSON-serializable descriptor.
- save_trace_csv(): write the autoplay trace (one row per step) to CSV.
===============================================================================
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.lab import FrameRecord


# Module-level render counter for auto-generating unique filenames
_render_counter: int = 0


def reset_render_counter() -> None:
    """Reset the render counter to 0."""
    global _render_counter
    _render_counter = 0


def save_render(
    svg_string: str,
    render_dir: Union[str, Path],
    prefix: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
    description: str = '',
    zone: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Save an SVG string to file and return a descriptor.

    Filenames are ``{prefix}_{counter:03d}.svg``.

    Args:
        svg_string: The SVG content from LensDiagramRenderer.to_string().
        render_dir: Directory path where the file will be saved.
        prefix: Filename prefix (e.g. 'lab', 'sweep').
        width: SVG width in pixels, if known.
        height: SVG height in pixels, if known.
        description: Human-readable description of what the render shows.
        zone: Optional teaching zone value shown in the drawing.

    Returns:
        JSON-serializable descriptor dict with the file path and metadata.
    """
    global _render_counter
    _render_counter += 1

    render_path = Path(render_dir)
    render_path.mkdir(parents=True, exist_ok=True)

    svg_path = render_path / f"{prefix}_{_render_counter:03d}.svg"
    svg_path.write_text(svg_string, encoding='utf-8')

    return {
        'svg_path': str(svg_path),
        'width': width,
        'height': height,
        'description': description,
        'zone': zone,
    }


def save_trace_csv(
    trace: List[FrameRecord],
    output_path: Union[str, Path],
    filename: str = "autoplay_trace.csv",
    precision: int = 4,
) -> Path:
    """
    Export an autoplay trace to CSV.

    Args:
        trace: FrameRecords collected by LensLab(record_trace=True).
        output_path: Directory where the CSV file will be saved.
        filename: Name of the output file (default: "autoplay_trace.csv").
        precision: Decimal places for time and distance (default: 4).

    Returns:
        Path: Full path to the created CSV file.

    Raises:
        OSError: If the directory cannot be created or the file cannot be written.
    """
    output_dir = Path(output_path)
    output_dir.mkdir(parents=True, exist_ok=True)
    csv_file = output_dir / filename

    fmt = f"{{:.{precision}f}}"
    with open(csv_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['step', 'time_ms', 'object_distance', 'zone',
                         'scheduler_state', 'is_narrating'])
        for i, record in enumerate(trace):
            writer.writerow([
                i,
                fmt.format(record.time_ms),
                fmt.format(record.object_distance),
                record.zone.value if record.zone is not None else '',
                record.scheduler_state.value,
                str(record.is_narrating).lower(),
            ])

    return csv_file
