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

Named textbook set-ups, one per imaging case, that the lab can jump to in a
single step.
"""

from dataclasses import dataclass
from typing import Dict, List, Union

from .optics import LensType
from .zones import TeachingZone


@dataclass(frozen=True)
class TeachingScenario:
    """
    One textbook configuration.

    Attributes:
        key: Identifier used by LensLab.apply_scenario().
        title: Human-readable name.
        zone: Zone the configuration demonstrates.
        lens_type, focal_length, object_distance, object_height: Parameters
            applied to the lab.
    """
    key: str
    title: str
    zone: TeachingZone
    lens_type: LensType
    focal_length: float
    object_distance: float
    object_height: float = 60.0


SCENARIOS: Dict[str, TeachingScenario] = {
    s.key: s for s in (
        TeachingScenario('camera', 'Camera (u > 2f)', TeachingZone.U_GT_2F,
                         LensType.CONVEX, 100.0, 300.0),
        TeachingScenario('equal_size', 'Focal length measurement (u = 2f)', TeachingZone.U_EQ_2F,
                         LensType.CONVEX, 100.0, 200.0),
        TeachingScenario('projector', 'Projector (f < u < 2f)', TeachingZone.F_LT_U_LT_2F,
                         LensType.CONVEX, 100.0, 150.0),
        TeachingScenario('no_image', 'Parallel light (u = f)', TeachingZone.U_EQ_F,
                         LensType.CONVEX, 100.0, 100.0),
        TeachingScenario('magnifier', 'Magnifying glass (u < f)', TeachingZone.U_LT_F,
                         LensType.CONVEX, 100.0, 60.0),
        TeachingScenario('concave', 'Concave lens', TeachingZone.CONCAVE_ALL,
                         LensType.CONCAVE, 100.0, 180.0),
    )
}


def list_scenarios() -> List[TeachingScenario]:
    return list(SCENARIOS.values())


def get_scenario(key: Union[str, TeachingScenario]) -> TeachingScenario:
    """
    Look up a scenario by key (a TeachingScenario is returned unchanged).

    Raises:
        ValueError: If the key is unknown.
    """
    if isinstance(key, TeachingScenario):
        return key
    try:
        return SCENARIOS[key]
    except KeyError:
        raise ValueError(
            f"Unknown scenario '{key}'. Valid options: {tuple(SCENARIOS)}"
        ) from None
