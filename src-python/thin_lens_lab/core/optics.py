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
THIN LENS OPTICS MODEL
===============================================================================
Pure functions mapping (lens type, focal length, object distance, object
height) to the image a thin lens forms.

Sign convention (light travels left to right, lens at the origin):
- The object sits left of the lens, so its signed position is u = -distance.
- A convex lens has f = +focal_length, a concave lens f = -focal_length.
- Lens equation 1/f = 1/v - 1/u, i.e. v = u*f / (u + f).
- v > 0 is a real image on the right, v < 0 a virtual image on the left.
- Magnification m = v / u; m < 0 means inverted.

Nothing here keeps state, so it is safe to call on every frame.
===============================================================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .constants import AT_INFINITY, SINGULARITY_EPSILON


class LensType(str, Enum):
    """Converging (convex) or diverging (concave) thin lens."""
    CONVEX = 'CONVEX'
    CONCAVE = 'CONCAVE'


class ImageNature(str, Enum):
    REAL = 'REAL'
    VIRTUAL = 'VIRTUAL'
    NONE = 'NONE'  # object on the focal point, refracted rays leave parallel


class Orientation(str, Enum):
    UPRIGHT = 'UPRIGHT'
    INVERTED = 'INVERTED'


class SizeClass(str, Enum):
    MAGNIFIED = 'MAGNIFIED'
    DIMINISHED = 'DIMINISHED'
    SAME = 'SAME'


def as_lens_type(value: Union[LensType, str]) -> LensType:
    """
    Coerce a LensType or its string name to LensType.

    Args:
        value: LensType member or one of 'CONVEX' / 'CONCAVE' (case-insensitive).

    Returns:
        The matching LensType.

    Raises:
        ValueError: If the value names no lens type.
    """
    if isinstance(value, LensType):
        return value
    try:
        return LensType(str(value).upper())
    except ValueError:
        raise ValueError(
            f"Invalid lens type '{value}'. "
            f"Valid options: {tuple(t.value for t in LensType)}"
        ) from None


def signed_focal_length(lens_type: Union[LensType, str], focal_length: float) -> float:
    """Focal length with the sign of the lens: positive convex, negative concave."""
    if as_lens_type(lens_type) is LensType.CONVEX:
        return focal_length
    return -focal_length


def image_distance(lens_type: Union[LensType, str], focal_length: float,
                   object_distance: float) -> float:
    """
    Signed image distance v for an object at the given (positive) distance.

    Args:
        lens_type: Convex or concave.
        focal_length: Focal length magnitude (> 0).
        object_distance: Object distance from the lens centre (> 0).

    Returns:
        v, or AT_INFINITY when the object is within SINGULARITY_EPSILON of
        the focal point.
    """
    u = -object_distance
    f = signed_focal_length(lens_type, focal_length)
    denominator = u + f
    if abs(denominator) < SINGULARITY_EPSILON:
        return AT_INFINITY
    return (u * f) / denominator


@dataclass(frozen=True)
class ImageResult:
    """
    Image formed by a thin lens for one configuration.

    Attributes:
        distance: Signed image distance v (AT_INFINITY if no image forms).
        magnification: v / u (AT_INFINITY if no image forms).
        height: magnification * object height (infinite with the sign of the
            object height if no image forms).
        nature: REAL, VIRTUAL or NONE.
        orientation: UPRIGHT or INVERTED, None when no image forms.
        size_class: MAGNIFIED, DIMINISHED or SAME, None when no image forms.
    """
    distance: float
    magnification: float
    height: float
    nature: ImageNature
    orientation: Optional[Orientation]
    size_class: Optional[SizeClass]

    @property
    def forms_image(self) -> bool:
        return self.nature is not ImageNature.NONE

    @property
    def is_real(self) -> bool:
        return self.nature is ImageNature.REAL

    @property
    def is_virtual(self) -> bool:
        return self.nature is ImageNature.VIRTUAL

    def to_dict(self) -> dict:
        """JSON-friendly view; infinite values become the strings 'inf' / '-inf'."""
        def _num(value: float):
            if math.isinf(value):
                return 'inf' if value > 0 else '-inf'
            return value

        return {
            'distance': _num(self.distance),
            'magnification': _num(self.magnification),
            'height': _num(self.height),
            'nature': self.nature.value,
            'orientation': self.orientation.value if self.orientation else None,
            'size_class': self.size_class.value if self.size_class else None,
        }


def classify_size(magnification: float) -> SizeClass:
    """Size class from |m| compared strictly with 1."""
    size = abs(magnification)
    if size > 1:
        return SizeClass.MAGNIFIED
    if size < 1:
        return SizeClass.DIMINISHED
    return SizeClass.SAME


def compute_image(lens_type: Union[LensType, str], focal_length: float,
                  object_distance: float, object_height: float) -> ImageResult:
    """
    Evaluate the thin lens equation and classify the image.

    Args:
        lens_type: Convex or concave.
        focal_length: Focal length magnitude (> 0).
        object_distance: Object distance from the lens centre (> 0).
        object_height: Object height; the sign encodes orientation.

    Returns:
        ImageResult. An object on the focal point yields nature NONE with
        distance and magnification AT_INFINITY and an infinite height
        carrying the sign of object_height.

    Example:
        >>> r = compute_image('CONVEX', 100, 300, 60)
        >>> r.distance, r.magnification, r.height
        (150.0, -0.5, -30.0)
    """
    v = image_distance(lens_type, focal_length, object_distance)
    if math.isinf(v):
        return ImageResult(
            distance=AT_INFINITY,
            magnification=AT_INFINITY,
            height=math.copysign(AT_INFINITY, object_height),
            nature=ImageNature.NONE,
            orientation=None,
            size_class=None,
        )

    u = -object_distance
    m = v / u
    return ImageResult(
        distance=v,
        magnification=m,
        height=m * object_height,
        nature=ImageNature.REAL if v > 0 else ImageNature.VIRTUAL,
        orientation=Orientation.UPRIGHT if m > 0 else Orientation.INVERTED,
        size_class=classify_size(m),
    )
