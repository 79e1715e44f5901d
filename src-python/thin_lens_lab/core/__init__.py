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

from . import constants
from .optics import (
    LensType, ImageNature, Orientation, SizeClass, ImageResult,
    compute_image, image_distance, signed_focal_length,
)
from .zones import TeachingZone, ZoneInfo, classify_zone, zone_info, imaging_rules_table
from .lab_state import LabState
from .clock import FrameClock, ManualFrameClock, RealtimeFrameClock
from .speech import (
    SpeechDriver, ScriptedSpeechDriver, SubprocessSpeechDriver, SpeechOutcome,
    SpeechUnavailableError, Utterance,
)
from .autoplay import AutoplayScheduler, SchedulerState, autoplay_speed, next_distance
from .narration import NarrationSynchronizer
from .scenarios import TeachingScenario, SCENARIOS, get_scenario, list_scenarios
from .lab import LensLab, AutoplaySession, FrameRecord
from .svg_renderer import LensDiagramRenderer

__all__ = [
    'constants',
    'LensType', 'ImageNature', 'Orientation', 'SizeClass', 'ImageResult',
    'compute_image', 'image_distance', 'signed_focal_length',
    'TeachingZone', 'ZoneInfo', 'classify_zone', 'zone_info', 'imaging_rules_table',
    'LabState',
    'FrameClock', 'ManualFrameClock', 'RealtimeFrameClock',
    'SpeechDriver', 'ScriptedSpeechDriver', 'SubprocessSpeechDriver', 'SpeechOutcome',
    'SpeechUnavailableError',
    'Utterance',
    'AutoplayScheduler', 'SchedulerState', 'autoplay_speed', 'next_distance',
    'NarrationSynchronizer',
    'TeachingScenario', 'SCENARIOS', 'get_scenario', 'list_scenarios',
    'LensLab', 'AutoplaySession', 'FrameRecord',
    'LensDiagramRenderer',
]
