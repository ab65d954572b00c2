# This file is part of pysketchkernel,  distributed under license LGPL v3

''' Sketches: a plane, geometric elements and the relations constraining them

	A sketch owns its elements in a list, and relations refer to them by their index in that list. Indices are stable: removing an element leaves an empty slot so the other indices keep their meaning.

	Elements expose their free parameters to the solver as a flat list of floats:

		:SketchPoint:  3 parameters, the point coordinates
		:SketchLine:   6 parameters, the coordinates of the two points
		:SketchArc:    6 parameters, the center coordinates, the radius, the start and end angles

	Example:

		>>> sketch = Sketch(SketchPlane.XY)
		>>> l = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,0.1,0))))
		>>> sketch.add_relation(Horizontal(l))
		0
		>>> sketch.solve()
'''

from copy import copy
from .mathutils import *
from .primitives import (
		GeometryError, Plane, Arc, CW, CCW, tolerance,
		TwoPointLine, isline, line_as_two_point,
		)

__all__ = [
	'SketchPlane', 'SketchElement', 'SketchPoint', 'SketchLine', 'SketchArc',
	'Sketch', 'InvalidElementReferenceError',
	]


class InvalidElementReferenceError(GeometryError, IndexError):
	''' A relation names an element index that does not exist (out of range or removed) in the sketch

		Attributes:
			index:     the invalid element index
			relation:  the relation holding that index, if any
	'''
	def __init__(self, message, index=None, relation=None):
		super().__init__(message)
		self.index = index
		self.relation = relation


class SketchPlane(object):
	''' The coordinate plane of a sketch, horizontal and vertical relations are defined in its base '''
	__slots__ = ('plane',)
	def __init__(self, plane: Plane):
		if not isinstance(plane, Plane):
			raise TypeError('a sketch plane must be defined by a Plane, not {}'.format(type(plane).__name__))
		self.plane = plane

	@property
	def normal(self) -> vec3:
		return self.plane.normal

	@property
	def center(self) -> vec3:
		return self.plane.center

	def base(self) -> '(vec3, vec3, vec3)':
		''' `(x, y, normal)` base, `x` is the horizontal and `y` the vertical direction '''
		return self.plane.base()

	def __repr__(self):
		return 'SketchPlane({})'.format(self.plane)

SketchPlane.XY = SketchPlane(Plane.XY)
SketchPlane.XZ = SketchPlane(Plane.XZ)
SketchPlane.YZ = SketchPlane(Plane.YZ)


class SketchElement(object):
	''' Common methods of sketch elements '''
	__slots__ = ()
	nparams = 0

	def params(self) -> list:
		''' The current free parameters as a list of floats '''
		raise NotImplementedError

	def assign(self, values):
		''' Replace the parameters by the given values '''
		raise NotImplementedError

	def normalize(self) -> 'self':
		''' Make the parameters canonical after a solve, most elements have nothing to do '''
		return self

	def degenerate(self, precision) -> bool:
		''' True if the parameters no longer describe a valid primitive at the given precision '''
		return False

	def variant(self, values) -> 'SketchElement':
		''' A copy of the element with the given parameters '''
		new = copy(self)
		new.assign(values)
		return new


class SketchPoint(SketchElement):
	''' Point of a sketch '''
	__slots__ = ('p',)
	nparams = 3
	def __init__(self, p):
		self.p = tovec(p)

	def params(self):
		return [self.p.x, self.p.y, self.p.z]

	def assign(self, values):
		self.p = vec3(float(values[0]), float(values[1]), float(values[2]))

	def __repr__(self):
		return 'SketchPoint({})'.format(self.p)


class SketchLine(SketchElement):
	''' Line of a sketch, kept in its two-point form

		Any line representation is accepted, it is converted with `line_as_two_point` (its errors propagate)
	'''
	__slots__ = ('a', 'b')
	nparams = 6
	def __init__(self, line):
		line = line_as_two_point(line)
		self.a = vec3(line.a)
		self.b = vec3(line.b)

	@property
	def line(self) -> TwoPointLine:
		return TwoPointLine(self.a, self.b)

	@property
	def direction(self) -> vec3:
		''' Unit direction, or the null vector if the points collapsed '''
		return safenormalize(self.b - self.a)

	@property
	def length(self) -> float:
		return distance(self.a, self.b)

	def params(self):
		return [*self.a, *self.b]

	def assign(self, values):
		self.a = vec3(float(values[0]), float(values[1]), float(values[2]))
		self.b = vec3(float(values[3]), float(values[4]), float(values[5]))

	def degenerate(self, precision):
		return distance(self.a, self.b) <= precision

	def __repr__(self):
		return 'SketchLine({}, {})'.format(self.a, self.b)


class SketchArc(SketchElement):
	''' Arc of a sketch, parameterized by its center, radius and its start and end angles

		The angles are measured around `z` from the `x` direction of the arc base, `z` being the arc axis oriented so the arc always travels positively from `alpha` to `beta`.
		The base is set from the initial arc and does not change during solving, start and end points are derived from the parameters so they are always at the radius distance from the center.
	'''
	__slots__ = ('center', 'radius', 'alpha', 'beta', 'x', 'y', 'z', 'direction')
	nparams = 6
	def __init__(self, arc: Arc):
		if not isinstance(arc, Arc):
			raise TypeError('expected an Arc, not {}'.format(type(arc).__name__))
		self.direction = arc.direction
		self.z = arc.axis  if arc.direction is CCW else  -arc.axis
		self.x = normalize(arc.start - arc.center)
		self.y = cross(self.z, self.x)
		self.center = vec3(arc.center)
		self.radius = arc.radius
		self.alpha = 0.
		self.beta = arc.angle

	def point(self, angle) -> vec3:
		return self.center + self.radius * (self.x*cos(angle) + self.y*sin(angle))

	@property
	def start(self) -> vec3:
		return self.point(self.alpha)

	@property
	def end(self) -> vec3:
		return self.point(self.beta)

	@property
	def normal(self) -> vec3:
		return self.z

	@property
	def arc(self) -> Arc:
		''' The primitive arc currently described by the element '''
		axis = self.z  if self.direction is CCW else  -self.z
		return Arc(self.center, self.radius, self.start, self.end, self.direction, axis)

	def params(self):
		return [*self.center, self.radius, self.alpha, self.beta]

	def assign(self, values):
		self.center = vec3(float(values[0]), float(values[1]), float(values[2]))
		self.radius = float(values[3])
		self.alpha = float(values[4])
		self.beta = float(values[5])

	def normalize(self):
		if self.radius < 0:
			self.radius = -self.radius
			self.alpha += pi
			self.beta += pi
		turns = floor(self.alpha / (2*pi))
		self.alpha -= 2*pi*turns
		self.beta -= 2*pi*turns
		return self

	def degenerate(self, precision):
		# collapsed circle, or start and end merged by a null or full turn sweep
		prec = max(precision, tolerance(abs(self.radius)))
		return abs(self.radius) <= prec or distance(self.start, self.end) <= prec

	def __repr__(self):
		return 'SketchArc({}, {}, {}, {})'.format(self.center, self.radius, self.start, self.end)


def element(obj) -> SketchElement:
	''' Sketch element wrapping the given primitive, elements are returned as is '''
	if isinstance(obj, SketchElement):	return obj
	elif isinstance(obj, Arc):			return SketchArc(obj)
	elif isline(obj):					return SketchLine(obj)
	elif isinstance(obj, (dvec3, fvec3, tuple, list)):	return SketchPoint(obj)
	raise TypeError('cannot make a sketch element from {}'.format(type(obj).__name__))


class Sketch(object):
	''' A plane with elements and relations, solved together to a consistent configuration

		Attributes:
			plane:      the `SketchPlane`
			elements:   list of `SketchElement`, `None` in the slots of removed elements
			relations:  list of relations, referencing elements by index
			revision:   counter incremented on each change of the relations set, any cached solver state for another revision is invalid
	'''
	def __init__(self, plane=None, elements=(), relations=()):
		if plane is None:				plane = SketchPlane.XY
		elif isinstance(plane, Plane):	plane = SketchPlane(plane)
		self.plane = plane
		self.elements = []
		self.relations = []
		self.revision = 0
		for e in elements:
			self.add(e)
		for r in relations:
			self.add_relation(r)

	def add(self, obj) -> int:
		''' Append an element (or a primitive to wrap as element), return its index '''
		self.elements.append(element(obj))
		return len(self.elements)-1

	def element(self, index) -> SketchElement:
		''' The element at the given index, raise `InvalidElementReferenceError` if there is none '''
		if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(self.elements):
			raise InvalidElementReferenceError('no element at index {}'.format(repr(index)), index)
		found = self.elements[index]
		if found is None:
			raise InvalidElementReferenceError('element {} has been removed'.format(index), index)
		return found

	def add_relation(self, relation) -> int:
		''' Append a relation after checking the elements it references, return its index '''
		relation.check(self)
		self.relations.append(relation)
		self.revision += 1
		return len(self.relations)-1

	def remove_relation(self, index: int):
		''' Remove and return the relation at the given index, the following relations are shifted '''
		relation = self.relations.pop(index)
		self.revision += 1
		return relation

	def remove(self, index: int) -> list:
		''' Remove the element at the given index and all the relations referencing it

			Return the list of removed relations. The other element indices are unchanged.
		'''
		self.element(index)
		self.elements[index] = None
		removed = [r  for r in self.relations  if index in r.elements]
		if removed:
			self.relations = [r  for r in self.relations  if index not in r.elements]
			self.revision += 1
		return removed

	def items(self):
		''' Iterator of `(index, element)` for the existing elements '''
		return ((i,e)  for i,e in enumerate(self.elements)  if e is not None)

	def parameters(self) -> list:
		''' All the element parameters, concatenated in element order '''
		values = []
		for i,e in self.items():
			values.extend(e.params())
		return values

	def solve(self, **kwargs) -> 'SolveReport':
		''' Shorthand for `solver.solve(self, **kwargs)` '''
		from .solver import solve
		return solve(self, **kwargs)

	def lines(self, resolution=None) -> '[TwoPointLine]':
		''' Shorthand for `tessellation.tessellate(self, resolution)` '''
		from .tessellation import tessellate
		return tessellate(self, resolution)

	def __repr__(self):
		return '<Sketch with {} elements, {} relations>'.format(
				sum(1 for e in self.elements if e is not None),
				len(self.relations))
