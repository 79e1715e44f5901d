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
Analysis Utilities
===============================================================================
Helpers built on top of the core model:

- Principal ray construction with Shapely, and recovery of the image point
  from the ray intersections
- Text/XML descriptions of an image or a whole lab
- SVG and autoplay-trace export
===============================================================================
"""

from .ray_diagram import (
    PrincipalRay,
    RayDiagram,
    principal_rays,
    locate_image_point,
    rays_meet_at_image,
)
from .describe import describe_image, describe_lab
from .saving import save_render, reset_render_counter, save_trace_csv

__all__ = [
    'PrincipalRay',
    'RayDiagram',
    'principal_rays',
    'locate_image_point',
    'rays_meet_at_image',
    'describe_image',
    'describe_lab',
    'save_render',
    'reset_render_counter',
    'save_trace_csv',
]
