# This file is part of pysketchkernel,  distributed under license LGPL v3

''' This module defines the relations between sketch elements

	Relations are small objects referencing sketch elements by their index and implementing the following signature to guide the solver:

		class SomeRelation(Relation):

			# attributes holding the element indices
			__slots__ = 'line', 'other'
			slvvars = 'line', 'other'
			# accepted element types for each of them
			kinds = {'line': (SketchLine,), 'other': (SketchLine,)}

			# return the residuals of the relation, one float per scalar equation
			# they must all be zero when the relation is satisfied and be continuous functions of the element parameters
			def fit(self, elements, plane):
				...

	`elements` is indexable by element index and gives element instances holding the parameters being evaluated, `plane` is the `SketchPlane` of the sketch.

	Residuals are absolute (lengths, or cross products of unit vectors), the solver precision applies to them directly.
'''

from .mathutils import *
from .primitives import InvalidArgumentError
from .sketch import SketchPoint, SketchLine, SketchArc, InvalidElementReferenceError

__all__ = [
	'Relation', 'isrelation',
	'Horizontal', 'Vertical', 'Coincident', 'Perpendicular', 'Tangent', 'Parallel', 'Colinear',
	'Coradial', 'Concentric', 'Midpoint', 'Intersection', 'Equal', 'Fixed',
	'INTERNAL', 'EXTERNAL',
	]

INTERNAL = 'internal'
EXTERNAL = 'external'

CURVES = (SketchLine, SketchArc)
ANY = (SketchPoint, SketchLine, SketchArc)


class Relation(object):
	''' Base of relations, positional arguments are assigned to the slots in order '''
	__slots__ = ()
	slvvars = ()
	kinds = {}

	def __init__(self, *args, **kwargs):
		for i,name in enumerate(self.__slots__):
			setattr(self, name, args[i] if i < len(args) else None)
		for name, arg in kwargs.items():
			setattr(self, name, arg)

	@property
	def elements(self) -> tuple:
		''' Indices of the referenced elements '''
		return tuple(getattr(self, name)  for name in self.slvvars)

	def check(self, sketch):
		''' Raise if the referenced elements do not exist in the sketch or have a wrong type '''
		for name in self.slvvars:
			index = getattr(self, name)
			try:
				found = sketch.element(index)
			except InvalidElementReferenceError as err:
				raise InvalidElementReferenceError('{} references {}: {}'.format(self, name, err), index, self) from err
			if not isinstance(found, self.kinds[name]):
				raise TypeError('{} expects {} for {}, not {}'.format(
						type(self).__name__,
						' or '.join(k.__name__ for k in self.kinds[name]),
						name,
						type(found).__name__))

	def fit(self, elements, plane) -> tuple:
		raise NotImplementedError

	def __repr__(self):
		return '{}({})'.format(type(self).__name__, ', '.join(repr(getattr(self, name))  for name in self.__slots__))

def isrelation(obj):
	''' Return True if obj matches the relation signature '''
	return hasattr(obj, 'fit') and hasattr(obj, 'slvvars')


def on_element(p, e) -> tuple:
	''' Residuals for the point `p` lying on the element `e` '''
	if isinstance(e, SketchPoint):
		return tuple(p - e.p)
	elif isinstance(e, SketchLine):
		return tuple(cross(p - e.a, e.direction))
	elif isinstance(e, SketchArc):
		v = p - e.center
		return length(v) - abs(e.radius), dot(v, e.z)
	raise TypeError('cannot put a point on {}'.format(type(e).__name__))

def tangency(arc, other, mode) -> float:
	''' Residual of the tangency of an arc to a line or an other arc '''
	if isinstance(other, SketchLine):
		return length(cross(arc.center - other.a, other.direction)) - abs(arc.radius)
	d = distance(arc.center, other.center)
	if mode == INTERNAL:
		return d - abs(abs(arc.radius) - abs(other.radius))
	else:
		return d - (abs(arc.radius) + abs(other.radius))


class Horizontal(Relation):
	''' Makes a line parallel to the `x` direction of the sketch plane '''
	__slots__ = 'line',
	slvvars = 'line',
	kinds = {'line': (SketchLine,)}
	def fit(self, elements, plane):
		l = elements[self.line]
		x,y,_ = plane.base()
		return dot(l.b - l.a, y),

class Vertical(Relation):
	''' Makes a line parallel to the `y` direction of the sketch plane '''
	__slots__ = 'line',
	slvvars = 'line',
	kinds = {'line': (SketchLine,)}
	def fit(self, elements, plane):
		l = elements[self.line]
		x,y,_ = plane.base()
		return dot(l.b - l.a, x),

class Coincident(Relation):
	''' Puts a point on an other point, on a line or on the circle of an arc '''
	__slots__ = 'point', 'other'
	slvvars = 'point', 'other'
	kinds = {'point': (SketchPoint,), 'other': ANY}
	def fit(self, elements, plane):
		return on_element(elements[self.point].p, elements[self.other])

class Perpendicular(Relation):
	''' Makes two lines orthogonal '''
	__slots__ = 'l1', 'l2'
	slvvars = 'l1', 'l2'
	kinds = {'l1': (SketchLine,), 'l2': (SketchLine,)}
	def fit(self, elements, plane):
		return dot(elements[self.l1].direction, elements[self.l2].direction),

class Parallel(Relation):
	''' Makes two lines parallel '''
	__slots__ = 'l1', 'l2'
	slvvars = 'l1', 'l2'
	kinds = {'l1': (SketchLine,), 'l2': (SketchLine,)}
	def fit(self, elements, plane):
		return tuple(cross(elements[self.l1].direction, elements[self.l2].direction))

class Colinear(Relation):
	''' Puts two lines on the same infinite line '''
	__slots__ = 'l1', 'l2'
	slvvars = 'l1', 'l2'
	kinds = {'l1': (SketchLine,), 'l2': (SketchLine,)}
	def fit(self, elements, plane):
		l1 = elements[self.l1]
		l2 = elements[self.l2]
		d1 = l1.direction
		return (*cross(d1, l2.direction), *cross(l2.a - l1.a, d1))

class Tangent(Relation):
	''' Makes an arc tangent to a line or an other arc

		Between two arcs the tangency is either `'external'` (the circles touch from outside) or `'internal'` (one is inside the other).
		With `mode=None`, the solver picks the one giving the nearest configuration.
	'''
	__slots__ = 'arc', 'other', 'mode'
	slvvars = 'arc', 'other'
	kinds = {'arc': (SketchArc,), 'other': CURVES}

	def check(self, sketch):
		if self.mode not in (None, INTERNAL, EXTERNAL):
			raise InvalidArgumentError('tangent mode must be {}, {} or None, not {}'.format(
					repr(INTERNAL), repr(EXTERNAL), repr(self.mode)))
		super().check(sketch)

	def fit(self, elements, plane):
		arc = elements[self.arc]
		other = elements[self.other]
		if self.mode is None and isinstance(other, SketchArc):
			return min(
				tangency(arc, other, INTERNAL),
				tangency(arc, other, EXTERNAL),
				key=abs),
		return tangency(arc, other, self.mode),

class Coradial(Relation):
	''' Makes two arcs share the same supporting circle '''
	__slots__ = 'a1', 'a2'
	slvvars = 'a1', 'a2'
	kinds = {'a1': (SketchArc,), 'a2': (SketchArc,)}
	def fit(self, elements, plane):
		a1 = elements[self.a1]
		a2 = elements[self.a2]
		return (*(a1.center - a2.center), abs(a1.radius) - abs(a2.radius))

class Concentric(Relation):
	''' Puts the center of an arc on the center of an other arc or on a point '''
	__slots__ = 'arc', 'other'
	slvvars = 'arc', 'other'
	kinds = {'arc': (SketchArc,), 'other': (SketchArc, SketchPoint)}
	def fit(self, elements, plane):
		other = elements[self.other]
		center = other.p  if isinstance(other, SketchPoint) else  other.center
		return tuple(elements[self.arc].center - center)

class Midpoint(Relation):
	''' Puts a point in the middle of a line '''
	__slots__ = 'point', 'line'
	slvvars = 'point', 'line'
	kinds = {'point': (SketchPoint,), 'line': (SketchLine,)}
	def fit(self, elements, plane):
		l = elements[self.line]
		return tuple(elements[self.point].p - mix(l.a, l.b, 0.5))

class Intersection(Relation):
	''' Puts a point on two curves at once '''
	__slots__ = 'point', 'c1', 'c2'
	slvvars = 'point', 'c1', 'c2'
	kinds = {'point': (SketchPoint,), 'c1': CURVES, 'c2': CURVES}
	def fit(self, elements, plane):
		p = elements[self.point].p
		return on_element(p, elements[self.c1]) + on_element(p, elements[self.c2])

class Equal(Relation):
	''' Gives the same length to two lines, or the same radius to two arcs '''
	__slots__ = 'e1', 'e2'
	slvvars = 'e1', 'e2'
	kinds = {'e1': CURVES, 'e2': CURVES}

	def check(self, sketch):
		super().check(sketch)
		if type(sketch.element(self.e1)) is not type(sketch.element(self.e2)):
			raise TypeError('Equal expects two lines or two arcs, not {} and {}'.format(
					type(sketch.element(self.e1)).__name__,
					type(sketch.element(self.e2)).__name__))

	def fit(self, elements, plane):
		e1 = elements[self.e1]
		e2 = elements[self.e2]
		if isinstance(e1, SketchLine):
			return e1.length - e2.length,
		return abs(e1.radius) - abs(e2.radius),

class Fixed(Relation):
	''' Pins all the parameters of an element to their current values

		It has no equation: the solver removes the parameters of the element from the free ones.
	'''
	__slots__ = 'element',
	slvvars = 'element',
	kinds = {'element': ANY}
	def fit(self, elements, plane):
		return ()
