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
"""

"""
Autoplay Demo - Sweeping the Object Toward a Convex Lens

Runs a full autoplay sweep headless, on a manual clock with a scripted
speech engine, so it finishes instantly and prints the same narration a
learner would hear.

Setup:
- Convex lens, f = 100
- Object starts at u = 450 and moves toward the lens
- Narration in English, scripted speech at 100 ms per character

Expected behavior:
- Five narrations, in order: u > 2f, u = 2f, f < u < 2f, u = f, u < f
- The object pauses at each zone change until the narration ends
- The sweep stops at u = 30
- One SVG per zone and a CSV of the whole trace next to this script
"""

import sys
import os

# Add parent directories to path to import thin_lens_lab
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from thin_lens_lab.core.clock import ManualFrameClock
from thin_lens_lab.core.lab import LensLab
from thin_lens_lab.core.speech import ScriptedSpeechDriver
from thin_lens_lab.core.svg_renderer import LensDiagramRenderer
from thin_lens_lab.analysis.describe import describe_lab
from thin_lens_lab.analysis.saving import save_render, save_trace_csv


def main():
    """Run the autoplay sweep and export a drawing per zone."""

    print("Autoplay Demo - Convex Lens Sweep")
    print("=" * 60)

    clock = ManualFrameClock()
    speech = ScriptedSpeechDriver(clock=clock, ms_per_char=100.0, base_ms=500.0)
    lab = LensLab(clock=clock, speech_driver=speech, language='en-US',
                  focal_length=100, object_distance=450, record_trace=True, verbose=1)

    output_dir = os.path.dirname(os.path.abspath(__file__))
    renders = []

    def on_narration(text):
        if not text:
            return
        print(f"\n[{clock.now() / 1000.0:7.2f}s] u={lab.object_distance:.2f}")
        print(f"  {text}")
        renderer = LensDiagramRenderer()
        renderer.render_lab(lab)
        renders.append(save_render(renderer.to_string(), output_dir, 'autoplay',
                                   renderer.width, renderer.height,
                                   description=lab.zone_summary,
                                   zone=lab.zone.value if lab.zone else None))

    lab.add_narration_listener(on_narration)

    print("\nStarting autoplay...")
    lab.play()
    frames = clock.run_until(lambda: not lab.is_playing)

    print("\n" + "=" * 60)
    print(f"Sweep finished after {frames} frames ({clock.now() / 1000.0:.1f} s simulated)")
    print(f"  Steps: {lab.scheduler.step_count}")
    print(f"  Narrations: {lab.narrator.trigger_count}")
    print(f"  Utterances spoken: {len(speech.spoken)}")
    print("\nFinal state:")
    print(describe_lab(lab))

    for render in renders:
        print(f"SVG saved to: {render['svg_path']}")
    csv_file = save_trace_csv(lab.trace, output_dir)
    print(f"Trace exported to: {csv_file}")


if __name__ == "__main__":
    main()
