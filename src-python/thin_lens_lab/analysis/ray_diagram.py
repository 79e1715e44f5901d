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
PRINCIPAL RAY GEOMETRY
===============================================================================
Builds the three textbook rays from the tip of the object as Shapely
geometry, in axis coordinates (lens at x = 0, object on the negative side,
y up):

1. parallel  - leaves the tip parallel to the axis, then passes through F'
               (convex) or diverges as if it came from F (concave);
2. center    - passes straight through the optical centre;
3. focal     - passes through F (convex) or aims at F' (concave) and leaves
               the lens parallel to the axis.

For virtual images the refracted rays are extended backwards (dashed in the
diagram). locate_image_point() intersects the refracted rays, which gives
the same image tip as the lens equation.
===============================================================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from shapely.geometry import LineString, Point

from ..core.constants import SINGULARITY_EPSILON
from ..core.optics import ImageResult, LensType, as_lens_type, compute_image

# Half-length used to turn a ray into an effectively infinite line
_LINE_HALF_LENGTH = 1.0e6


@dataclass
class PrincipalRay:
    """
    One principal ray.

    Attributes:
        name: 'parallel', 'center' or 'focal'.
        color: Drawing colour.
        incident: Object tip to the lens.
        refracted: Lens to the far edge of the diagram.
        virtual_extension: Backward continuation of the refracted ray toward
            a virtual image (or the virtual focal point), if any.
    """
    name: str
    color: str
    incident: LineString
    refracted: LineString
    virtual_extension: Optional[LineString] = None

    @property
    def lens_hit(self) -> Point:
        return Point(self.refracted.coords[0])


@dataclass
class RayDiagram:
    """
    Principal rays plus the reference points of a thin-lens configuration.

    Attributes:
        lens_type: Convex or concave.
        focal_length: Focal length magnitude.
        object_distance: Object distance (positive).
        object_height: Object height.
        image: ImageResult from the lens equation.
        object_tip: Tip of the object.
        image_tip: Tip of the image, None when no image forms.
        rays: The principal rays (the focal ray is omitted when the object
            sits on the focal point).
        focal_points: Axis marks F, F', 2F, 2F' as (x, 0).
    """
    lens_type: LensType
    focal_length: float
    object_distance: float
    object_height: float
    image: ImageResult
    object_tip: Point
    image_tip: Optional[Point]
    rays: List[PrincipalRay] = field(default_factory=list)
    focal_points: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    def ray(self, name: str) -> PrincipalRay:
        for ray in self.rays:
            if ray.name == name:
                return ray
        raise ValueError(f"No ray named '{name}'. Rays: {[r.name for r in self.rays]}")


def _infinite_line(p1: Tuple[float, float], p2: Tuple[float, float]) -> LineString:
    """Line through p1 and p2 extended far in both directions."""
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    length = math.hypot(dx, dy)
    ux, uy = dx / length, dy / length
    return LineString([
        (p1[0] - ux * _LINE_HALF_LENGTH, p1[1] - uy * _LINE_HALF_LENGTH),
        (p1[0] + ux * _LINE_HALF_LENGTH, p1[1] + uy * _LINE_HALF_LENGTH),
    ])


def principal_rays(lens_type: Union[LensType, str], focal_length: float,
                   object_distance: float, object_height: float,
                   extent: float = 400.0) -> RayDiagram:
    """
    Build the principal-ray diagram for one configuration.

    Args:
        lens_type: Convex or concave.
        focal_length: Focal length magnitude.
        object_distance: Object distance (positive).
        object_height: Object height.
        extent: x coordinate where refracted rays end (right diagram edge).

    Returns:
        RayDiagram in axis coordinates.
    """
    lens_type = as_lens_type(lens_type)
    f = focal_length
    h = object_height
    u = -object_distance
    image = compute_image(lens_type, f, object_distance, h)
    tip = (u, h)
    image_tip = None if not image.forms_image else (image.distance, image.height)

    rays: List[PrincipalRay] = []

    # 1. Parallel to the axis
    hit1 = (0.0, h)
    if lens_type is LensType.CONVEX:
        end1 = (extent, h - h / f * extent)
    else:
        end1 = (extent, h + h / f * extent)
    ext1 = None
    if lens_type is LensType.CONCAVE:
        ext1 = LineString([hit1, (-f, 0.0)])
    elif image.is_virtual:
        ext1 = LineString([hit1, image_tip])
    rays.append(PrincipalRay('parallel', '#ef4444', LineString([tip, hit1]),
                             LineString([hit1, end1]), ext1))

    # 2. Through the optical centre
    hit2 = (0.0, 0.0)
    end2 = (extent, h / u * extent)
    ext2 = LineString([hit2, image_tip]) if image.is_virtual else None
    rays.append(PrincipalRay('center', '#10b981', LineString([tip, hit2]),
                             LineString([hit2, end2]), ext2))

    # 3. Through (or toward) a focal point, leaving parallel
    if lens_type is LensType.CONVEX:
        if abs(u + f) >= SINGULARITY_EPSILON:
            slope3 = -h / (-f - u)
            y_hit3 = h + slope3 * (0.0 - u)
            hit3 = (0.0, y_hit3)
            ext3 = LineString([hit3, image_tip]) if image.is_virtual else None
            rays.append(PrincipalRay('focal', '#3b82f6', LineString([tip, hit3]),
                                     LineString([hit3, (extent, y_hit3)]), ext3))
    else:
        slope3 = -h / (f - u)
        y_hit3 = h + slope3 * (0.0 - u)
        hit3 = (0.0, y_hit3)
        ext3 = LineString([hit3, image_tip]) if image_tip is not None else None
        rays.append(PrincipalRay('focal', '#3b82f6', LineString([tip, hit3]),
                                 LineString([hit3, (extent, y_hit3)]), ext3))

    return RayDiagram(
        lens_type=lens_type,
        focal_length=f,
        object_distance=object_distance,
        object_height=h,
        image=image,
        object_tip=Point(tip),
        image_tip=Point(image_tip) if image_tip is not None else None,
        rays=rays,
        focal_points={
            'F': (-f, 0.0),
            "F'": (f, 0.0),
            '2F': (-2 * f, 0.0),
            "2F'": (2 * f, 0.0),
        },
    )


def locate_image_point(diagram: RayDiagram) -> Optional[Point]:
    """
    Recover the image tip by intersecting the parallel and center rays.

    The refracted rays are treated as full lines, so real images (forward
    intersection) and virtual images (backward intersection) are handled
    alike.

    Returns:
        Shapely Point, or None when the rays leave parallel (object at F).
    """
    if not diagram.image.forms_image:
        return None
    parallel = diagram.ray('parallel').refracted
    center = diagram.ray('center').refracted
    line1 = _infinite_line(parallel.coords[0], parallel.coords[-1])
    line2 = _infinite_line(center.coords[0], center.coords[-1])
    crossing = line1.intersection(line2)
    if crossing.is_empty or crossing.geom_type != 'Point':
        return None
    return crossing


def rays_meet_at_image(diagram: RayDiagram, tolerance: float = 1e-3) -> bool:
    """True if every refracted ray (as a full line) passes within tolerance of the image tip."""
    if diagram.image_tip is None:
        return False
    for ray in diagram.rays:
        start, end = ray.refracted.coords[0], ray.refracted.coords[-1]
        if _infinite_line(start, end).distance(diagram.image_tip) > tolerance:
            return False
    return True
