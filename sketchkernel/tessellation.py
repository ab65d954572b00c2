# This file is part of pysketchkernel,  distributed under license LGPL v3

''' Flattening of sketches, loops and curves into straight segments, for an external renderer

	The result of `tessellate()` is an ordered list of `TwoPointLine`, curves giving consecutive chords in their travel order. `segment_buffer()` and `ribbon_buffer()` pack segments into numpy arrays ready to upload as vertex buffers.
'''

import numpy as np
from .mathutils import *
from .primitives import (
		Plane, Arc, Circle, TwoPointLine, isline, line_as_two_point,
		arc_to_polyline, circle_to_polyline, generate_offset_quad,
		)
from .sketch import Sketch, SketchPoint, SketchLine, SketchArc
from .boundary import BoundaryLoop, BoundaryLine, BoundaryArc, BoundaryPolygon, flatten
from . import settings

__all__ = ['tessellate', 'segment_buffer', 'ribbon_buffer', 'glmarray']


def tessellate(obj, resolution=None) -> '[TwoPointLine]':
	''' Straight segments approximating the given object

		Args:
			obj:         a `Sketch`, a `BoundaryLoop`, a boundary element, an `Arc`, a `Circle`, any line, or an iterable of them
			resolution:  number of segments per curve, or a resolution specification for `settings.curve_resolution()`

		Points of a sketch give no segment.
	'''
	if isinstance(obj, Sketch):
		segments = []
		for i, element in obj.items():
			if isinstance(element, SketchLine):
				segments.append(element.line)
			elif isinstance(element, SketchArc):
				segments.extend(tessellate(element.arc, resolution))
		return segments
	elif isinstance(obj, (SketchPoint, SketchLine, SketchArc)):
		sketch = Sketch()
		sketch.add(obj)
		return tessellate(sketch, resolution)
	elif isinstance(obj, Arc):
		div = settings.curve_resolution(obj.length, obj.angle, resolution)
		return arc_to_polyline(obj, div)
	elif isinstance(obj, Circle):
		div = settings.curve_resolution(obj.length, 2*pi, resolution)
		return circle_to_polyline(obj, div)
	elif isline(obj):
		return [line_as_two_point(obj)]
	elif isinstance(obj, BoundaryLine):
		return [obj.line]
	elif isinstance(obj, BoundaryArc):
		return tessellate(obj.arc, resolution)
	elif isinstance(obj, (BoundaryLoop, BoundaryPolygon)):
		return tessellate(flatten(obj), resolution)
	elif hasattr(obj, '__iter__'):
		segments = []
		for e in obj:
			segments.extend(tessellate(e, resolution))
		return segments
	raise TypeError('cannot tessellate {}'.format(type(obj).__name__))


def glmarray(array, dtype='f4') -> np.ndarray:
	''' Create a numpy array from a list of glm vec '''
	buff = np.empty((len(array), 3), dtype=dtype)
	for i,e in enumerate(array):
		buff[i][:] = e
	return buff

def segment_buffer(segments, dtype='f4') -> np.ndarray:
	''' Array of shape `(2*n, 3)` holding the endpoints of the `n` given segments, suited for a line list draw '''
	return glmarray([p  for s in segments  for p in (s.a, s.b)], dtype)

def ribbon_buffer(segments, plane: Plane, width: float, dtype='f4') -> np.ndarray:
	''' Array of shape `(6*n, 3)` holding two triangles per segment, drawing each segment as a ribbon of the given width in `plane` '''
	return glmarray([p  for s in segments  for p in generate_offset_quad(s, plane, width)], dtype)
