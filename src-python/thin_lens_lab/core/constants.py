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
Constants shared by the optics model, the zone classifier, the autoplay
scheduler and the narration synchronizer.

All lengths are in lab units (one unit = one pixel of the 800x400 diagram).
All times are in milliseconds unless the name says otherwise.

Two boundary tolerances exist on purpose and must not be merged:
- SINGULARITY_EPSILON guards the division in the lens equation.
- ZONE_BOUNDARY_EPSILON decides when the object "is at" f or 2f. The
  scheduler snaps onto f and 2f using the same margin (SNAP_MARGIN), so a
  snapped distance is always classified as the boundary zone.
"""

import math

# Image distance / magnification value used when no image forms
AT_INFINITY = math.inf

# |u + f| below this means the object sits on the focal point
SINGULARITY_EPSILON = 0.1

# Half-width of the "u = f" and "u = 2f" bands used by the zone classifier
ZONE_BOUNDARY_EPSILON = 0.5

# A tentative step landing within this distance above f or 2f snaps onto it
SNAP_MARGIN = ZONE_BOUNDARY_EPSILON

# =============================================================================
# Input ranges (setters clamp into these)
# =============================================================================

FOCAL_LENGTH_MIN = 50.0
FOCAL_LENGTH_MAX = 200.0

OBJECT_DISTANCE_MIN = 20.0
OBJECT_DISTANCE_MAX = 450.0

OBJECT_HEIGHT_MIN = 20.0
OBJECT_HEIGHT_MAX = 120.0

# Values restored by LensLab.reset()
DEFAULT_FOCAL_LENGTH = 100.0
DEFAULT_OBJECT_DISTANCE = 180.0
DEFAULT_OBJECT_HEIGHT = 60.0

# =============================================================================
# Autoplay
# =============================================================================

# Playback stops once the object reaches this distance
AUTOPLAY_MIN_DISTANCE = 30.0

# Starting playback from the floor first rewinds the object to here
AUTOPLAY_RESTART_DISTANCE = OBJECT_DISTANCE_MAX

# Ticks closer together than this are skipped (about 60 fps)
FRAME_INTERVAL_MS = 16.0

# Speeds in units per second
CONCAVE_SPEED = 30.0
FAST_APPROACH_SPEED = 60.0     # beyond 2f + FAST_ZONE_MARGIN
BOUNDARY_SPEED = 15.0          # within SLOW_BAND of f or 2f
MAGNIFIED_REAL_SPEED = 50.0    # between f + margin and 2f - margin
DEFAULT_SPEED = 20.0           # everything else (mostly the virtual zone)

SLOW_BAND = 20.0
FAST_ZONE_MARGIN = 50.0

# =============================================================================
# Narration
# =============================================================================

# Hold used when audio is off or no speech driver exists:
# SIMULATED_HOLD_BASE_MS + len(text) * SIMULATED_HOLD_PER_CHAR_MS
SIMULATED_HOLD_BASE_MS = 1000.0
SIMULATED_HOLD_PER_CHAR_MS = 150.0

DEFAULT_LANGUAGE = 'zh-CN'
SUPPORTED_LANGUAGES = ('zh-CN', 'en-US')

# Utterance settings passed to the speech driver
SPEECH_RATE = 0.9
SPEECH_PITCH = 1.0
SPEECH_VOLUME = 1.0

# Offline text-to-speech (SubprocessSpeechDriver)
# Words per minute at SPEECH_RATE = 1.0
TTS_WORDS_PER_MINUTE = 176
# How often a running speech process is checked for exit
TTS_POLL_MS = 50.0
# Longest utterance before the process is killed and the utterance errors
TTS_MAX_UTTERANCE_MS = 30000.0
# espeak voice per narration language
TTS_ESPEAK_VOICES = {'zh-CN': 'zh', 'en-US': 'en-us'}
