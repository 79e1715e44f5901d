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

from typing import Callable, List, Optional, Union

from .constants import (
    DEFAULT_FOCAL_LENGTH,
    DEFAULT_OBJECT_DISTANCE,
    DEFAULT_OBJECT_HEIGHT,
    FOCAL_LENGTH_MAX,
    FOCAL_LENGTH_MIN,
    OBJECT_DISTANCE_MAX,
    OBJECT_DISTANCE_MIN,
    OBJECT_HEIGHT_MAX,
    OBJECT_HEIGHT_MIN,
)
from .optics import ImageResult, LensType, as_lens_type, compute_image
from .zones import TeachingZone, classify_zone


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, float(value)))


class LabState:
    """
    The physical parameters of the lens experiment.

    Every setter clamps into the documented range instead of rejecting the
    value, then notifies listeners if anything actually changed. Listeners
    receive the name of the changed attribute.

    Attributes:
        lens_type (LensType): Convex or concave.
        focal_length (float): Focal length magnitude, clamped to [50, 200].
        object_distance (float): Object distance from the lens centre,
            clamped to [20, 450].
        object_height (float): Object height, clamped to [20, 120].
    """

    def __init__(self,
                 lens_type: Union[LensType, str] = LensType.CONVEX,
                 focal_length: float = DEFAULT_FOCAL_LENGTH,
                 object_distance: float = DEFAULT_OBJECT_DISTANCE,
                 object_height: float = DEFAULT_OBJECT_HEIGHT):
        self._listeners: List[Callable[[str], None]] = []
        self._lens_type = as_lens_type(lens_type)
        self._focal_length = clamp(focal_length, FOCAL_LENGTH_MIN, FOCAL_LENGTH_MAX)
        self._object_distance = clamp(object_distance, OBJECT_DISTANCE_MIN, OBJECT_DISTANCE_MAX)
        self._object_height = clamp(object_height, OBJECT_HEIGHT_MIN, OBJECT_HEIGHT_MAX)

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, callback: Callable[[str], None]) -> None:
        """Register a callback invoked with the attribute name after a change."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[str], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, name: str) -> None:
        for callback in list(self._listeners):
            callback(name)

    # =========================================================================
    # Parameters
    # =========================================================================

    @property
    def lens_type(self) -> LensType:
        return self._lens_type

    @lens_type.setter
    def lens_type(self, value):
        value = as_lens_type(value)
        if value is not self._lens_type:
            self._lens_type = value
            self._notify('lens_type')

    @property
    def focal_length(self) -> float:
        return self._focal_length

    @focal_length.setter
    def focal_length(self, value):
        value = clamp(value, FOCAL_LENGTH_MIN, FOCAL_LENGTH_MAX)
        if value != self._focal_length:
            self._focal_length = value
            self._notify('focal_length')

    @property
    def object_distance(self) -> float:
        return self._object_distance

    @object_distance.setter
    def object_distance(self, value):
        value = clamp(value, OBJECT_DISTANCE_MIN, OBJECT_DISTANCE_MAX)
        if value != self._object_distance:
            self._object_distance = value
            self._notify('object_distance')

    @property
    def object_height(self) -> float:
        return self._object_height

    @object_height.setter
    def object_height(self, value):
        value = clamp(value, OBJECT_HEIGHT_MIN, OBJECT_HEIGHT_MAX)
        if value != self._object_height:
            self._object_height = value
            self._notify('object_height')

    # =========================================================================
    # Derived values
    # =========================================================================

    @property
    def image(self) -> ImageResult:
        """Image for the current parameters (recomputed on every access)."""
        return compute_image(self._lens_type, self._focal_length,
                             self._object_distance, self._object_height)

    @property
    def zone(self) -> Optional[TeachingZone]:
        """Teaching zone for the current parameters."""
        return classify_zone(self._lens_type, self._focal_length, self._object_distance)

    def as_dict(self) -> dict:
        return {
            'lens_type': self._lens_type.value,
            'focal_length': self._focal_length,
            'object_distance': self._object_distance,
            'object_height': self._object_height,
        }

    def __repr__(self):
        return (f"LabState(lens_type={self._lens_type.value}, "
                f"focal_length={self._focal_length:g}, "
                f"object_distance={self._object_distance:g}, "
                f"object_height={self._object_height:g})")
