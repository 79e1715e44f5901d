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

Text and XML descriptions of an image and of a whole lab, for logs and for
tools that cannot look at the SVG.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from ..core.optics import ImageResult

if TYPE_CHECKING:
    from ..core.lab import LensLab


def _fmt(value: float) -> str:
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    return f'{value:.2f}'


def _escape_xml(text) -> str:
    """Escape special characters for XML."""
    if text is None:
        return ""
    return (str(text)
            .replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
            .replace("'", "&apos;"))


def describe_image(image: ImageResult) -> str:
    """
    One-line description of an image.

    Example:
        >>> from thin_lens_lab.core.optics import compute_image
        >>> describe_image(compute_image('CONVEX', 100, 300, 60))
        'REAL, INVERTED, DIMINISHED image at v=150.00 (m=-0.50, h=-30.00)'
    """
    if not image.forms_image:
        return 'No image (refracted rays are parallel)'
    return (f'{image.nature.value}, {image.orientation.value}, {image.size_class.value} '
            f'image at v={_fmt(image.distance)} '
            f'(m={_fmt(image.magnification)}, h={_fmt(image.height)})')


def describe_lab(lab: 'LensLab', format: str = 'text') -> str:
    """
    Describe the current experiment state.

    Args:
        lab: The LensLab to describe.
        format: 'text' for human-readable lines, 'xml' for an XML document.

    Returns:
        Formatted description.
    """
    if format == 'xml':
        return _describe_lab_xml(lab)
    return _describe_lab_text(lab)


def _describe_lab_text(lab: 'LensLab') -> str:
    zone = lab.zone
    lines = [
        f'Lens: {lab.lens_type.value} (f={lab.focal_length:.2f})',
        f'Object: u={lab.object_distance:.2f}, h={lab.object_height:.2f}',
        f'Image: {describe_image(lab.image)}',
        f'Zone: {zone.value if zone is not None else "-"}',
        f'Rule: {lab.zone_summary or "-"}',
        f'Autoplay: {lab.scheduler_state.value}'
        + (' (narrating)' if lab.is_narrating else ''),
    ]
    if lab.narration:
        lines.append(f'Narration: {lab.narration}')
    return '\n'.join(lines)


def _describe_lab_xml(lab: 'LensLab') -> str:
    image = lab.image
    zone = lab.zone
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', '<lens_lab>']

    lines.append('  <parameters>')
    lines.append(f'    <lens_type>{lab.lens_type.value}</lens_type>')
    lines.append(f'    <focal_length>{lab.focal_length:.4f}</focal_length>')
    lines.append(f'    <object_distance>{lab.object_distance:.4f}</object_distance>')
    lines.append(f'    <object_height>{lab.object_height:.4f}</object_height>')
    lines.append('  </parameters>')

    lines.append('  <image>')
    for key, value in image.to_dict().items():
        lines.append(f'    <{key}>{_escape_xml(value)}</{key}>')
    lines.append('  </image>')

    if zone is not None:
        lines.append(f'  <zone value="{_escape_xml(zone.value)}">'
                     f'{_escape_xml(lab.zone_summary)}</zone>')
    else:
        lines.append('  <zone/>')

    lines.append('  <autoplay>')
    lines.append(f'    <state>{lab.scheduler_state.value}</state>')
    lines.append(f'    <narrating>{str(lab.is_narrating).lower()}</narrating>')
    if lab.narration:
        lines.append(f'    <narration>{_escape_xml(lab.narration)}</narration>')
    lines.append('  </autoplay>')

    lines.append('</lens_lab>')
    return '\n'.join(lines)
