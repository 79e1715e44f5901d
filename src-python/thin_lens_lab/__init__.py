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

Thin Lens Lab
=============

Simulation core of an interactive thin-lens imaging experiment: the lens
equation, the textbook imaging zones, an autoplay sweep of the object toward
the lens, and narration that pauses the sweep while each zone is explained.

Main modules:
- core: Optics model, zones, autoplay scheduler, narration, LensLab facade
- analysis: Shapely ray diagrams, descriptions and export helpers
- examples: Headless demonstrations

Quick start:
    from thin_lens_lab import LensLab, ManualFrameClock
    clock = ManualFrameClock()
    lab = LensLab(clock=clock)
    lab.play()
    clock.run_frames(60)
"""

__version__ = "0.1.0"

# Convenience imports for common usage
from .core.lab import LensLab
from .core.clock import ManualFrameClock, RealtimeFrameClock
from .core.optics import LensType, compute_image
from .core.zones import TeachingZone, classify_zone

__all__ = [
    'LensLab',
    'ManualFrameClock',
    'RealtimeFrameClock',
    'LensType',
    'compute_image',
    'TeachingZone',
    'classify_zone',
    '__version__',
]
