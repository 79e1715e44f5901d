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

import math

import svgwrite

from .optics import LensType


# Colours of the experiment drawing
AXIS_COLOR = '#64748b'
LENS_COLOR = '#2563eb'
OBJECT_COLOR = '#f59e0b'
IMAGE_COLOR = '#8b5cf6'
FOCAL_COLOR = '#dc2626'
SUBTITLE_COLOR = '#0f172a'


class LensDiagramRenderer:
    """
    SVG renderer for the thin-lens experiment.

    The drawing is organized into four Inkscape layers (bottom to top):
    - objects: optical axis, lens, object and image arrows
    - graphic annotations: focal point marks and the lens centre
    - rays: the principal rays and their dashed virtual extensions
    - labels: text (point names, zone summary, narration subtitle)

    Coordinate System:
        Axis coordinates with the lens at the origin, the object on the
        negative x side and positive y upward. Each layer carries a
        vertical flip so the SVG matches that convention.

    Attributes:
        width (int): Canvas width in pixels
        height (int): Canvas height in pixels
        user_viewbox (tuple): (min_x, min_y, width, height) in Y-up coordinates
        dwg (svgwrite.Drawing): The SVG drawing object
    """

    def __init__(self, width=1000, height=440, viewbox=None, metadata_level='standard'):
        """
        Initialize the renderer.

        Args:
            width (int): Canvas width in pixels (default: 1000)
            height (int): Canvas height in pixels (default: 440)
            viewbox (tuple or None): (min_x, min_y, width, height) in Y-up
                axis coordinates. If None, centres the lens in a 1000 x 440 box.
            metadata_level (str): 'none' or 'standard'. With 'standard' every
                element gets an id and a CSS class for later scripting.
        """
        self.width = width
        self.height = height
        self.metadata_level = metadata_level
        self.user_viewbox = viewbox if viewbox is not None else (-500, -220, 1000, 440)

        # Y-up viewbox -> SVG Y-down viewbox
        min_x, min_y, vb_width, vb_height = self.user_viewbox
        self.viewbox = (min_x, -(min_y + vb_height), vb_width, vb_height)

        self.dwg = svgwrite.Drawing(size=(f'{width}px', f'{height}px'),
                                    profile='full', debug=False)
        self.dwg.viewbox(*self.viewbox)
        self.dwg['xmlns:inkscape'] = 'http://www.inkscape.org/namespaces/inkscape'

        self.dwg.add(self.dwg.rect(
            insert=(self.viewbox[0], self.viewbox[1]),
            size=(self.viewbox[2], self.viewbox[3]),
            fill='white'
        ))

        self.layer_objects = self._add_layer('layer-objects', 'Objects')
        self.layer_graphic_symb = self._add_layer('layer-graphic-symb', 'Graphic Annotations')
        self.layer_rays = self._add_layer('layer-rays', 'Rays')
        self.layer_labels = self._add_layer('layer-labels', 'Labels')

        self.virtual_pattern = "6, 4"
        self.axis_pattern = "20, 5, 5, 5"

    def _add_layer(self, layer_id, label):
        return self.dwg.add(self.dwg.g(
            id=layer_id,
            transform='scale(1, -1)',
            **{'inkscape:groupmode': 'layer', 'inkscape:label': label}
        ))

    def _tag(self, element, element_id=None, css_class=None):
        if self.metadata_level == 'none':
            return element
        if element_id:
            element['id'] = element_id
        if css_class:
            element['class'] = css_class
        return element

    # =========================================================================
    # Coordinates
    # =========================================================================

    def _normalize_coord(self, value):
        """Map -0.0 and values within 1e-10 of zero to 0.0."""
        if value == 0.0 or abs(value) < 1e-10:
            return 0.0
        return value

    def _normalize_point(self, point):
        return {
            'x': self._normalize_coord(point['x']),
            'y': self._normalize_coord(point['y'])
        }

    def _clip_to_viewbox(self, p1, p2):
        """
        Clip a line segment to the viewbox (Liang-Barsky).

        Args:
            p1 (dict): Start point in Y-up coordinates
            p2 (dict): End point in Y-up coordinates

        Returns:
            tuple: (clipped_p1, clipped_p2) or (None, None) if completely outside
        """
        min_x, min_y, width, height = self.user_viewbox
        max_x = min_x + width
        max_y = min_y + height

        x1, y1 = p1['x'], p1['y']
        x2, y2 = p2['x'], p2['y']
        dx = x2 - x1
        dy = y2 - y1

        t0, t1 = 0.0, 1.0
        for p, q in ((-dx, x1 - min_x), (dx, max_x - x1),
                     (-dy, y1 - min_y), (dy, max_y - y1)):
            if abs(p) < 1e-10:
                if q < 0:
                    return None, None
            else:
                t = q / p
                if p < 0:
                    t0 = max(t0, t)
                else:
                    t1 = min(t1, t)

        if t0 > t1:
            return None, None

        return ({'x': x1 + t0 * dx, 'y': y1 + t0 * dy},
                {'x': x1 + t1 * dx, 'y': y1 + t1 * dy})

    @staticmethod
    def _finite(*values):
        return all(not (math.isnan(v) or math.isinf(v)) for v in values)

    # =========================================================================
    # Primitives
    # =========================================================================

    def draw_segment(self, p1, p2, color='black', opacity=1.0, stroke_width=1.5,
                     dashed=False, layer=None, element_id=None, css_class=None):
        """
        Draw a clipped line segment.

        Returns:
            bool: False if the segment is degenerate or outside the viewbox.
        """
        if not self._finite(p1['x'], p1['y'], p2['x'], p2['y']):
            return False
        p1_clipped, p2_clipped = self._clip_to_viewbox(p1, p2)
        if p1_clipped is None or p2_clipped is None:
            return False
        p1 = self._normalize_point(p1_clipped)
        p2 = self._normalize_point(p2_clipped)

        kwargs = dict(
            start=(p1['x'], p1['y']),
            end=(p2['x'], p2['y']),
            stroke=color,
            stroke_width=stroke_width,
            stroke_opacity=opacity,
        )
        if dashed:
            kwargs['stroke_dasharray'] = dashed if isinstance(dashed, str) else self.virtual_pattern
        line = self._tag(self.dwg.line(**kwargs), element_id, css_class)
        (layer if layer is not None else self.layer_rays).add(line)
        return True

    def draw_text(self, text, point, color='black', font_size='12px', anchor='start',
                  element_id=None, css_class=None):
        """Draw readable text at a Y-up point."""
        point = self._normalize_point(point)
        label = self.dwg.text(
            text,
            insert=(point['x'], -point['y']),
            fill=color,
            font_size=font_size,
            font_family='sans-serif',
            text_anchor=anchor,
            transform='scale(1, -1)'  # Flip text back to be readable
        )
        self.layer_labels.add(self._tag(label, element_id, css_class))

    def draw_point(self, point, color='black', radius=3, label=None, element_id=None):
        point = self._normalize_point(point)
        circle = self.dwg.circle(center=(point['x'], point['y']), r=radius, fill=color)
        self.layer_graphic_symb.add(self._tag(circle, element_id, 'point'))
        if label:
            self.draw_text(label, {'x': point['x'], 'y': point['y'] - 18},
                           color=color, font_size='12px', anchor='middle')

    def draw_axis(self):
        min_x, _, width, _ = self.user_viewbox
        self.draw_segment({'x': min_x, 'y': 0.0}, {'x': min_x + width, 'y': 0.0},
                          color=AXIS_COLOR, stroke_width=1, dashed=self.axis_pattern,
                          layer=self.layer_objects, element_id='optical-axis', css_class='axis')

    def draw_lens(self, focal_length, half_height=160, color=LENS_COLOR):
        """
        Draw the lens at the origin with arrows indicating converging/diverging.

        Args:
            focal_length (float): Signed focal length (positive=converging)
            half_height (float): Half the drawn lens height
            color (str): Lens colour
        """
        p1 = {'x': 0.0, 'y': -half_height}
        p2 = {'x': 0.0, 'y': half_height}
        line = self.dwg.line(start=(p1['x'], p1['y']), end=(p2['x'], p2['y']),
                             stroke=color, stroke_width=3)
        self.layer_objects.add(self._tag(line, 'lens',
                                         'lens-convex' if focal_length > 0 else 'lens-concave'))

        size = 10
        for end, direction in ((p1, 1.0), (p2, -1.0)):
            if focal_length > 0:
                # Converging lens - arrows point outward along the lens
                points = [
                    (end['x'], end['y'] - direction * size),
                    (end['x'] + size, end['y'] + direction * size),
                    (end['x'] - size, end['y'] + direction * size),
                ]
            else:
                # Diverging lens - arrows point inward
                points = [
                    (end['x'], end['y'] + direction * size),
                    (end['x'] + size, end['y'] - direction * size),
                    (end['x'] - size, end['y'] - direction * size),
                ]
            self.layer_objects.add(self.dwg.polygon(points=points, fill=color))

        self.draw_point({'x': 0.0, 'y': 0.0}, color=AXIS_COLOR, radius=3,
                        label='O', element_id='lens-center')

    def draw_arrow(self, x, tip_y, color, opacity=1.0, dashed=False, element_id=None,
                   css_class=None):
        """Draw a vertical arrow from the axis at x up (or down) to tip_y."""
        if not self._finite(x, tip_y):
            return False
        drawn = self.draw_segment({'x': x, 'y': 0.0}, {'x': x, 'y': tip_y}, color=color,
                                  opacity=opacity, stroke_width=4, dashed=dashed,
                                  layer=self.layer_objects, element_id=element_id,
                                  css_class=css_class)
        if not drawn:
            return False
        head = 10 if tip_y >= 0 else -10
        head_points = [
            (x, tip_y),
            (x - 8, tip_y - head),
            (x + 8, tip_y - head),
        ]
        self.layer_objects.add(self.dwg.polygon(points=head_points, fill=color,
                                                fill_opacity=opacity))
        return True

    def draw_subtitle(self, text, color=SUBTITLE_COLOR):
        """Narration line along the bottom edge of the drawing."""
        if not text:
            return
        min_x, min_y, width, _ = self.user_viewbox
        self.draw_text(text, {'x': min_x + width / 2, 'y': min_y + 16},
                       color=color, font_size='14px', anchor='middle',
                       element_id='subtitle', css_class='subtitle')

    # =========================================================================
    # Experiment
    # =========================================================================

    def draw_diagram(self, diagram):
        """
        Draw a RayDiagram: lens, focal marks, object, image and rays.

        Args:
            diagram (RayDiagram): Output of analysis.ray_diagram.principal_rays()
        """
        f = diagram.focal_length
        signed_f = f if diagram.lens_type is LensType.CONVEX else -f

        self.draw_axis()
        self.draw_lens(signed_f)
        for name, (x, y) in diagram.focal_points.items():
            element_id = 'focal-' + name.replace("'", 'p').lower()
            self.draw_point({'x': x, 'y': y}, color=FOCAL_COLOR, radius=4,
                            label=name, element_id=element_id)

        tip = diagram.object_tip
        self.draw_arrow(tip.x, tip.y, OBJECT_COLOR, element_id='object', css_class='object')

        image = diagram.image
        if diagram.image_tip is not None:
            self.draw_arrow(diagram.image_tip.x, diagram.image_tip.y, IMAGE_COLOR,
                            opacity=0.5 if image.is_virtual else 1.0,
                            dashed=image.is_virtual, element_id='image',
                            css_class='image-virtual' if image.is_virtual else 'image-real')

        for ray in diagram.rays:
            for part, segment in (('incident', ray.incident), ('refracted', ray.refracted)):
                (x1, y1), (x2, y2) = segment.coords[0], segment.coords[-1]
                self.draw_segment({'x': x1, 'y': y1}, {'x': x2, 'y': y2}, color=ray.color,
                                  element_id=f'ray-{ray.name}-{part}', css_class='ray')
            if ray.virtual_extension is not None:
                (x1, y1), (x2, y2) = (ray.virtual_extension.coords[0],
                                      ray.virtual_extension.coords[-1])
                self.draw_segment({'x': x1, 'y': y1}, {'x': x2, 'y': y2}, color=ray.color,
                                  opacity=0.6, stroke_width=1, dashed=True,
                                  element_id=f'ray-{ray.name}-virtual', css_class='ray-virtual')

    def render_lab(self, lab):
        """
        Draw the current state of a LensLab, including zone summary and subtitle.

        Args:
            lab (LensLab): The experiment to draw
        """
        # Deferred: analysis imports core
        from ..analysis.ray_diagram import principal_rays

        min_x, _, width, _ = self.user_viewbox
        diagram = principal_rays(lab.lens_type, lab.focal_length, lab.object_distance,
                                 lab.object_height, extent=min_x + width)
        self.draw_diagram(diagram)

        min_x, min_y, width, height = self.user_viewbox
        if lab.zone_summary:
            self.draw_text(lab.zone_summary, {'x': min_x + 12, 'y': min_y + height - 24},
                           font_size='14px', element_id='zone-summary', css_class='summary')
        self.draw_subtitle(lab.narration)
        return diagram

    def save(self, filename=None):
        """
        Save the SVG to a file.

        Args:
            filename (str): Output filename (default: 'lens_lab.svg')
        """
        if filename is None:
            filename = "lens_lab.svg"
        self.dwg.saveas(filename)

    def to_string(self):
        return self.dwg.tostring()
