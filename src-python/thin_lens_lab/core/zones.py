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
TEACHING ZONES
===============================================================================
Discrete classification of the object position relative to f and 2f, and
the teaching content attached to each zone (narration, summary, imaging
rule, everyday application).

Convex lens zones, checked in order (first match wins):

    u > 2f + eps        U_GT_2F        inverted, diminished, real
    |u - 2f| <= eps     U_EQ_2F        inverted, same size, real
    f + eps < u < 2f - eps
                        F_LT_U_LT_2F   inverted, magnified, real
    |u - f| <= eps      U_EQ_F         no image
    u < f - eps         U_LT_F         upright, magnified, virtual

A concave lens has a single zone, CONCAVE_ALL: its image is always upright,
diminished and virtual.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from .constants import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES, ZONE_BOUNDARY_EPSILON
from .optics import LensType, as_lens_type


class TeachingZone(str, Enum):
    CONCAVE_ALL = 'concave_all'
    U_GT_2F = 'u > 2f'
    U_EQ_2F = 'u = 2f'
    F_LT_U_LT_2F = 'f < u < 2f'
    U_EQ_F = 'u = f'
    U_LT_F = 'u < f'


def classify_zone(lens_type: Union[LensType, str], focal_length: float,
                  object_distance: float,
                  epsilon: float = ZONE_BOUNDARY_EPSILON) -> Optional[TeachingZone]:
    """
    Classify the object position into a teaching zone.

    Args:
        lens_type: Convex or concave.
        focal_length: Focal length magnitude.
        object_distance: Object distance from the lens centre (positive).
        epsilon: Half-width of the u = f and u = 2f bands.

    Returns:
        The TeachingZone, or None when the distance falls in a seam between
        bands (only possible if epsilon is changed inconsistently). None is
        a non-event for the narrator, not an error.
    """
    if as_lens_type(lens_type) is LensType.CONCAVE:
        return TeachingZone.CONCAVE_ALL

    f = focal_length
    u = object_distance

    if u > 2 * f + epsilon:
        return TeachingZone.U_GT_2F
    if abs(u - 2 * f) <= epsilon:
        return TeachingZone.U_EQ_2F
    if f + epsilon < u < 2 * f - epsilon:
        return TeachingZone.F_LT_U_LT_2F
    if abs(u - f) <= epsilon:
        return TeachingZone.U_EQ_F
    if u < f - epsilon:
        return TeachingZone.U_LT_F
    return None


@dataclass(frozen=True)
class ZoneInfo:
    """
    Teaching content for one zone in one language.

    Attributes:
        zone: The zone this content belongs to.
        label: Short condition label, e.g. 'u > 2f'.
        narration: Sentence spoken/subtitled when autoplay enters the zone.
        summary: One-line rule shown next to the live image data.
        image_distance_rule: Where the image lands, e.g. 'f < v < 2f'.
        properties: Image properties, e.g. 'inverted, diminished, real'.
        application: Everyday device relying on this case.
    """
    zone: TeachingZone
    label: str
    narration: str
    summary: str
    image_distance_rule: str
    properties: str
    application: str


_ZONE_CONTENT: Dict[str, Dict[TeachingZone, ZoneInfo]] = {
    'zh-CN': {
        TeachingZone.CONCAVE_ALL: ZoneInfo(
            zone=TeachingZone.CONCAVE_ALL,
            label='凹透镜',
            narration='现在演示凹透镜成像。凹透镜对光线具有发散作用。请注意观察，'
                      '无论物体距离透镜多远，始终在透镜同侧形成正立、缩小的虚像。',
            summary='凹透镜总是成正立、缩小的虚像。',
            image_distance_rule='|v| < f (同侧)',
            properties='正立、缩小、虚像',
            application='近视眼镜',
        ),
        TeachingZone.U_GT_2F: ZoneInfo(
            zone=TeachingZone.U_GT_2F,
            label='u > 2f',
            narration='当物距大于二倍焦距时，凸透镜成倒立、缩小的实像。'
                      '这一原理被广泛应用于照相机和摄像机中。',
            summary='物距 > 2f: 成倒立、缩小的实像 (如照相机)。',
            image_distance_rule='f < v < 2f',
            properties='倒立、缩小、实像',
            application='照相机、眼睛',
        ),
        TeachingZone.U_EQ_2F: ZoneInfo(
            zone=TeachingZone.U_EQ_2F,
            label='u = 2f',
            narration='当物距等于二倍焦距时，像距也等于二倍焦距。此时，'
                      '凸透镜成倒立、等大的实像。这是测量焦距的重要方法。',
            summary='物距 = 2f: 成倒立、等大的实像 (测焦距)。',
            image_distance_rule='v = 2f',
            properties='倒立、等大、实像',
            application='测焦距',
        ),
        TeachingZone.F_LT_U_LT_2F: ZoneInfo(
            zone=TeachingZone.F_LT_U_LT_2F,
            label='f < u < 2f',
            narration='当物距处于一倍焦距和二倍焦距之间时，凸透镜成倒立、放大的实像。'
                      '投影仪和幻灯机就是利用这一原理制成的。',
            summary='f < 物距 < 2f: 成倒立、放大的实像 (如投影仪)。',
            image_distance_rule='v > 2f',
            properties='倒立、放大、实像',
            application='投影仪、幻灯机',
        ),
        TeachingZone.U_EQ_F: ZoneInfo(
            zone=TeachingZone.U_EQ_F,
            label='u = f',
            narration='当物距等于一倍焦距时，折射光线平行射出，不能成像。'
                      '此处是实像与虚像的分界点。',
            summary='物距 = f: 不成像 (光线平行)。',
            image_distance_rule='/',
            properties='不成像 (光线平行)',
            application='获得平行光',
        ),
        TeachingZone.U_LT_F: ZoneInfo(
            zone=TeachingZone.U_LT_F,
            label='u < f',
            narration='当物距小于一倍焦距时，凸透镜成正立、放大的虚像。'
                      '我们需要透过透镜观察。放大镜就是利用这一原理工作的。',
            summary='物距 < f: 成正立、放大的虚像 (如放大镜)。',
            image_distance_rule='/ (同侧)',
            properties='正立、放大、虚像',
            application='放大镜',
        ),
    },
    'en-US': {
        TeachingZone.CONCAVE_ALL: ZoneInfo(
            zone=TeachingZone.CONCAVE_ALL,
            label='concave',
            narration='Now showing a concave lens. A concave lens spreads light out. '
                      'However far away the object is, the lens always forms an upright, '
                      'diminished virtual image on the same side as the object.',
            summary='A concave lens always forms an upright, diminished virtual image.',
            image_distance_rule='|v| < f (same side)',
            properties='upright, diminished, virtual',
            application='glasses for short sight',
        ),
        TeachingZone.U_GT_2F: ZoneInfo(
            zone=TeachingZone.U_GT_2F,
            label='u > 2f',
            narration='When the object is farther than twice the focal length, a convex lens '
                      'forms an inverted, diminished real image. Cameras and video cameras '
                      'work this way.',
            summary='u > 2f: inverted, diminished real image (camera).',
            image_distance_rule='f < v < 2f',
            properties='inverted, diminished, real',
            application='camera, the eye',
        ),
        TeachingZone.U_EQ_2F: ZoneInfo(
            zone=TeachingZone.U_EQ_2F,
            label='u = 2f',
            narration='When the object is exactly twice the focal length away, the image is '
                      'also twice the focal length away. The lens forms an inverted real image '
                      'of the same size. This is a standard way to measure focal length.',
            summary='u = 2f: inverted, same-size real image (measuring focal length).',
            image_distance_rule='v = 2f',
            properties='inverted, same size, real',
            application='measuring focal length',
        ),
        TeachingZone.F_LT_U_LT_2F: ZoneInfo(
            zone=TeachingZone.F_LT_U_LT_2F,
            label='f < u < 2f',
            narration='When the object is between one and two focal lengths away, a convex lens '
                      'forms an inverted, magnified real image. Projectors and slide projectors '
                      'are built on this principle.',
            summary='f < u < 2f: inverted, magnified real image (projector).',
            image_distance_rule='v > 2f',
            properties='inverted, magnified, real',
            application='projector, slide projector',
        ),
        TeachingZone.U_EQ_F: ZoneInfo(
            zone=TeachingZone.U_EQ_F,
            label='u = f',
            narration='When the object sits at the focal point, the refracted rays leave '
                      'parallel and no image forms. This is the boundary between real and '
                      'virtual images.',
            summary='u = f: no image (parallel rays).',
            image_distance_rule='/',
            properties='no image (parallel rays)',
            application='producing parallel light',
        ),
        TeachingZone.U_LT_F: ZoneInfo(
            zone=TeachingZone.U_LT_F,
            label='u < f',
            narration='When the object is closer than the focal length, a convex lens forms an '
                      'upright, magnified virtual image that we see by looking through the lens. '
                      'A magnifying glass works this way.',
            summary='u < f: upright, magnified virtual image (magnifying glass).',
            image_distance_rule='/ (same side)',
            properties='upright, magnified, virtual',
            application='magnifying glass',
        ),
    },
}


def check_language(language: str) -> str:
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Invalid language '{language}'. "
            f"Valid options: {SUPPORTED_LANGUAGES}"
        )
    return language


def zone_info(zone: TeachingZone, language: str = DEFAULT_LANGUAGE) -> ZoneInfo:
    """Teaching content for a zone in the requested language."""
    return _ZONE_CONTENT[check_language(language)][zone]


def zone_narration(zone: Optional[TeachingZone], language: str = DEFAULT_LANGUAGE) -> str:
    """Narration sentence for a zone, or '' for no zone."""
    if zone is None:
        return ''
    return zone_info(zone, language).narration


def zone_summary(zone: Optional[TeachingZone], language: str = DEFAULT_LANGUAGE) -> str:
    """One-line imaging rule for a zone, or '' for no zone."""
    if zone is None:
        return ''
    return zone_info(zone, language).summary


def imaging_rules_table(language: str = DEFAULT_LANGUAGE):
    """
    Rows of the convex-lens imaging rules table, in sweep order.

    Returns:
        List of ZoneInfo for the five convex zones (far to near).
    """
    content = _ZONE_CONTENT[check_language(language)]
    return [
        content[TeachingZone.U_GT_2F],
        content[TeachingZone.U_EQ_2F],
        content[TeachingZone.F_LT_U_LT_2F],
        content[TeachingZone.U_EQ_F],
        content[TeachingZone.U_LT_F],
    ]
