# This file is part of pysketchkernel,  distributed under license LGPL v3

''' Definition of the geometric primitives of the kernel and their algebra

	Primitives are small immutable-by-convention objects holding their coordinates as `vec3`. Every constructor copies the given coordinates, so a primitive never aliases a caller's vector.

	A line has three interchangeable representations:

		:ParametricLine:  origin `p` and direction `v`, describing `P(t) = p + t*v`
		:TwoPointLine:    two distinct points `a` and `b`, also bounding a segment
		:ImplicitLine:    coefficients `(a,b,c,d)` of the plane `a*x + b*y + c*z + d = 0` intersected with a supporting plane

	Conversions between representations are explicit and fail with `UnsupportedConversionError` when the data cannot give the requested form.

	Curve resolution
	----------------

	Curves are discretized in chords on demand, see `arc_to_polyline()` and `circle_to_polyline()`. The tessellation module uses `settings.curve_resolution()` to choose a segment count when a resolution specification is given instead.
'''

from enum import Enum
from numbers import Integral
from .mathutils import *
from . import settings

__all__ = [
	'GeometryError', 'DegenerateInputError', 'UnsupportedConversionError', 'DegenerateProjectionError', 'InvalidArgumentError',
	'Plane', 'Circle', 'Arc', 'ArcDirection', 'CW', 'CCW',
	'ParametricLine', 'TwoPointLine', 'ImplicitLine', 'isline',
	'normalize_plane', 'line_as_two_point', 'line_as_parametric', 'line_as_implicit',
	'project_point_to_plane', 'project_line_to_plane', 'distance_point_line',
	'arc_to_polyline', 'circle_to_polyline', 'generate_offset_quad',
	]


class GeometryError(Exception):
	''' Base of all the errors raised by the kernel '''
	pass

class DegenerateInputError(GeometryError, ValueError):
	''' Zero-length vectors, zero or negative radius, coincident points where distinct ones are needed '''
	pass

class UnsupportedConversionError(GeometryError):
	''' A representation conversion is not derivable from the given data '''
	pass

class DegenerateProjectionError(GeometryError):
	''' A projection collapses the geometry (for instance a line parallel to the projection direction) '''
	pass

class InvalidArgumentError(GeometryError, ValueError):
	''' An argument is out of its domain (zero tessellation segments, arc endpoints off its radius, ...) '''
	pass


def tolerance(*scales) -> float:
	''' Absolute tolerance for geometric comparisons at the magnitude of the given scales '''
	return settings.primitives['precision'] * max(1., *scales)


class Plane(object):
	''' Infinite plane of unit `normal`, passing through `center`

		The points `p` of the plane satisfy `dot(normal, p - center) == 0`. The normal is normalized at construction and the attributes are read-only, so the plane constants `Plane.XY`, `Plane.XZ`, `Plane.YZ` can be shared freely.
	'''
	__slots__ = ('_normal', '_center')
	def __init__(self, normal, center=O):
		normal = tovec(normal)
		l = length(normal)
		if not (isfinite(l) and l > NUMPREC):
			raise DegenerateInputError('plane normal must be a non null vector, not {}'.format(normal))
		self._normal = normal / l
		self._center = tovec(center)

	@property
	def normal(self) -> vec3:
		return vec3(self._normal)

	@property
	def center(self) -> vec3:
		return vec3(self._center)

	def distance(self, point) -> float:
		''' Signed distance from the plane to the given point '''
		return dot(point - self._center, self._normal)

	def base(self) -> '(vec3, vec3, vec3)':
		''' Right-handed orthonormal base `(x, y, normal)` with `x` and `y` in the plane '''
		align = X  if abs(self._normal.x) < 0.9 else  Y
		return dirbase(self._normal, align)

	def __eq__(self, other):
		return (isinstance(other, Plane)
			and self._normal == other._normal
			and self._center == other._center)

	def __hash__(self):
		return hash((tuple(self._normal), tuple(self._center)))

	def __repr__(self):
		return 'Plane({}, {})'.format(self._normal, self._center)

Plane.XY = Plane(Z, O)
Plane.XZ = Plane(Y, O)
Plane.YZ = Plane(X, O)


def normalize_plane(normal, center=O) -> Plane:
	''' Plane with the given normal direction (normalized) through `center` '''
	return Plane(normal, center)

def project_point_to_plane(point, plane: Plane) -> vec3:
	''' Orthogonal projection of `point` on `plane`, projecting a point already on the plane returns it unchanged '''
	point = tovec(point)
	normal = plane.normal
	return point - dot(point - plane.center, normal) * normal


class ArcDirection(Enum):
	''' Rotation direction of an arc from its start to its end, relative to its axis '''
	CW = 'cw'
	CCW = 'ccw'

CW = ArcDirection.CW
CCW = ArcDirection.CCW


class Circle(object):
	''' Circle centered on `center` with the given radius, in the plane orthogonal to `normal` '''
	__slots__ = ('center', 'radius', 'normal')
	def __init__(self, center, radius: float, normal=Z):
		if not radius > 0:
			raise DegenerateInputError('circle radius must be strictly positive, not {}'.format(radius))
		normal = tovec(normal)
		if not length(normal) > NUMPREC:
			raise DegenerateInputError('circle normal must be a non null vector')
		self.center = tovec(center)
		self.radius = float(radius)
		self.normal = normalize(normal)

	@property
	def length(self) -> float:
		return 2*pi*self.radius

	def point(self, angle) -> vec3:
		''' Point at the given angle, measured from the `x` of `dirbase(normal)` '''
		x,y,z = dirbase(self.normal)
		return self.center + self.radius * (x*cos(angle) + y*sin(angle))

	def box(self) -> Box:
		return Box(center=self.center, width=vec3(2*self.radius))

	def __repr__(self):
		return 'Circle({}, {}, {})'.format(self.center, self.radius, self.normal)


class Arc(object):
	''' Circular arc from `start` to `end` around `center`

		The arc turns around its axis in the given direction: `CCW` is a positive rotation around the axis, `CW` a negative one.
		The axis is the given `normal` if any, else `normalize(cross(start-center, end-center))`, in which case a `CCW` arc is the short way from start to end and a `CW` arc the long way.

		Beware that without a normal, `CW` does not mean the short way turning negatively: both directions share the same axis and cover complementary sweeps, the `CW` arc from `X` to `Y` passes by `-X` and `-Y`. To get the short arc turning the other way, swap `start` and `end` or give the opposite normal.

		An explicit normal is requested when start, center and end are aligned (a half circle), since the plane of the arc is then undefined.

		Attributes:
			center:     center of the supporting circle
			radius:     radius of the supporting circle, `start` and `end` must be at this distance of `center`
			start:      first point of the arc
			end:        last point of the arc, distinct from `start` (a closed arc is a `Circle`)
			direction:  `CW` or `CCW`
			normal:     the explicit axis if given, else None
	'''
	__slots__ = ('center', 'radius', 'start', 'end', 'direction', 'normal')
	def __init__(self, center, radius: float, start, end, direction=CCW, normal=None):
		if not radius > 0:
			raise DegenerateInputError('arc radius must be strictly positive, not {}'.format(radius))
		self.center = tovec(center)
		self.radius = float(radius)
		self.start = tovec(start)
		self.end = tovec(end)
		self.direction = ArcDirection(direction)
		prec = tolerance(radius)
		if (abs(distance(self.start, self.center) - radius) > prec
		or  abs(distance(self.end, self.center) - radius) > prec):
			raise InvalidArgumentError('arc start and end must be at radius {} from the center'.format(radius))
		if distance(self.start, self.end) <= prec:
			raise DegenerateInputError('arc start and end are the same point, use a Circle instead')
		if normal is not None:
			normal = tovec(normal)
			if not length(normal) > NUMPREC:
				raise DegenerateInputError('arc normal must be a non null vector')
			normal = normalize(normal)
			if (abs(dot(self.start-self.center, normal)) > prec
			or  abs(dot(self.end-self.center, normal)) > prec):
				raise InvalidArgumentError('arc start and end must lie in the plane orthogonal to its normal')
			self.normal = normal
		else:
			self.normal = None
			if not length(cross(self.start-self.center, self.end-self.center)) > prec*radius:
				raise DegenerateInputError('arc plane is undefined when start, center and end are aligned, give an explicit normal')

	@property
	def axis(self) -> vec3:
		''' Reference normal of the arc, around which `direction` is defined '''
		if self.normal is not None:
			return self.normal
		return normalize(cross(self.start-self.center, self.end-self.center))

	@property
	def angle(self) -> float:
		''' Sweep angle from start to end in the arc direction, in `]0, 2*pi[` '''
		x = self.start - self.center
		e = self.end - self.center
		a = atan2(dot(cross(x,e), self.axis), dot(x,e)) % (2*pi)
		if self.direction is CW:
			a = (2*pi - a) % (2*pi)
		return a

	@property
	def length(self) -> float:
		return self.radius * self.angle

	def _frame(self):
		''' Base `(x, y)` in which the arc is the rotation of `x` toward `y` '''
		z = self.axis  if self.direction is CCW else  -self.axis
		v = self.start - self.center
		x = v / length(v)
		return x, cross(z, x)

	def point(self, t: float) -> vec3:
		''' Point of the arc at the fraction `t` of its sweep, `t=0` is `start` and `t=1` is `end` '''
		x, y = self._frame()
		a = self.angle * t
		r = length(self.start - self.center)
		return self.center + r * (x*cos(a) + y*sin(a))

	def points(self, div: int) -> list:
		''' `div+1` points regularly spaced along the arc, from exactly `start` to exactly `end` '''
		x, y = self._frame()
		angle = self.angle
		r = length(self.start - self.center)
		pts = [vec3(self.start)]
		for i in range(1, div):
			a = angle * i/div
			pts.append(self.center + r * (x*cos(a) + y*sin(a)))
		pts.append(vec3(self.end))
		return pts

	def tangent(self, t: float) -> vec3:
		''' Unit tangent in the travel direction at the fraction `t` of the sweep '''
		z = self.axis  if self.direction is CCW else  -self.axis
		return normalize(cross(z, self.point(t) - self.center))

	def contains(self, point, prec=None) -> bool:
		''' Return True if the point lies on the arc (on the circle and inside the sweep) '''
		if prec is None:	prec = tolerance(self.radius)
		v = point - self.center
		if abs(length(v) - self.radius) > prec or abs(dot(v, self.axis)) > prec:
			return False
		x, y = self._frame()
		a = atan2(dot(v,y), dot(v,x)) % (2*pi)
		return a <= self.angle + prec/self.radius or a >= 2*pi - prec/self.radius

	def reverse(self) -> 'Arc':
		''' Same arc traveled from end to start '''
		return Arc(self.center, self.radius, self.end, self.start,
				CW if self.direction is CCW else CCW,
				self.axis)

	def box(self) -> Box:
		''' Box bounding the whole supporting circle, enough for pruning '''
		return Box(center=self.center, width=vec3(2*self.radius))

	def __repr__(self):
		return 'Arc({}, {}, {}, {}, {})'.format(self.center, self.radius, self.start, self.end, self.direction.name)


class ParametricLine(object):
	''' Infinite line `P(t) = p + t*v`, `v` is not necessarily normalized '''
	__slots__ = ('p', 'v')
	def __init__(self, p, v):
		self.p = tovec(p)
		self.v = tovec(v)

	def __call__(self, t):
		return self.p + t*self.v

	def __repr__(self):
		return 'ParametricLine({}, {})'.format(self.p, self.v)

class TwoPointLine(object):
	''' Line through two distinct points `a` and `b`, also bounding the segment from `a` to `b` '''
	__slots__ = ('a', 'b')
	def __init__(self, a, b):
		self.a = tovec(a)
		self.b = tovec(b)
		if not distance(self.a, self.b) > NUMPREC * max(1, norminf(self.a), norminf(self.b)):
			raise DegenerateInputError('the two points of a line must be distinct, got {} twice'.format(self.a))

	def __call__(self, t):
		return mix(self.a, self.b, t)

	@property
	def direction(self) -> vec3:
		return normalize(self.b-self.a)

	@property
	def origin(self) -> vec3:
		return mix(self.a, self.b, 0.5)

	@property
	def length(self) -> float:
		return distance(self.a, self.b)

	def reverse(self) -> 'TwoPointLine':
		return TwoPointLine(self.b, self.a)

	def box(self) -> Box:
		return Box(glm.min(self.a, self.b), glm.max(self.a, self.b))

	def __eq__(self, other):
		return isinstance(other, TwoPointLine) and self.a == other.a and self.b == other.b

	def __hash__(self):
		return hash((tuple(self.a), tuple(self.b)))

	def __repr__(self):
		return 'TwoPointLine({}, {})'.format(self.a, self.b)

class ImplicitLine(object):
	''' Line intersection of the plane `a*x + b*y + c*z + d = 0` with the supporting `plane`

		With the default supporting plane XY and `c = 0`, this is the usual 2D form `a*x + b*y + d = 0`
	'''
	__slots__ = ('a', 'b', 'c', 'd', 'plane')
	def __init__(self, a, b, c, d, plane=Plane.XY):
		self.a, self.b, self.c, self.d = float(a), float(b), float(c), float(d)
		self.plane = plane

	@property
	def coefficients(self) -> vec3:
		return vec3(self.a, self.b, self.c)

	def __repr__(self):
		return 'ImplicitLine({}, {}, {}, {})'.format(self.a, self.b, self.c, self.d)

def isline(obj):
	''' Return True if obj is one of the line representations '''
	return isinstance(obj, (ParametricLine, TwoPointLine, ImplicitLine))


def line_as_two_point(line) -> TwoPointLine:
	''' Two-point form of any line representation

		- a parametric line gives its points at `t=0` and `t=1`
		- an implicit line gives its point closest to the supporting plane center, and that point moved by the unit direction
	'''
	if isinstance(line, TwoPointLine):
		return line
	elif isinstance(line, ParametricLine):
		a, b = line.p, line.p + line.v
		if not (isfinite(a) and isfinite(b)):
			raise UnsupportedConversionError('parametric line has non finite coordinates', line)
		if not distance(a, b) > NUMPREC * max(1, norminf(a)):
			raise UnsupportedConversionError('parametric line has a null direction', line)
		return TwoPointLine(a, b)
	elif isinstance(line, ImplicitLine):
		n1 = line.coefficients
		n2 = line.plane.normal
		q = line.plane.center
		u = cross(n1, n2)
		if not (isfinite(n1) and isfinite(line.d)):
			raise UnsupportedConversionError('implicit line has non finite coefficients', line)
		if not length(n1) > NUMPREC:
			raise UnsupportedConversionError('implicit line has all its direction coefficients null', line)
		if not length(u) > NUMPREC * length(n1):
			raise UnsupportedConversionError('implicit line plane is parallel to its supporting plane', line)
		# point of both planes closest to q, for planes  dot(n1,p) = -d  and  dot(n2,p) = dot(n2,q)
		h1 = -line.d - dot(n1, q)
		p = q + h1 * cross(n2, u) / dot(u,u)
		return TwoPointLine(p, p + normalize(u))
	else:
		raise UnsupportedConversionError('no two-point form for {}'.format(type(line).__name__))

def line_as_parametric(line) -> ParametricLine:
	''' Parametric form of any line representation, `P(0)` and `P(1)` are the points of the two-point form '''
	if isinstance(line, ParametricLine):
		return line
	elif isinstance(line, (TwoPointLine, ImplicitLine)):
		two = line_as_two_point(line)
		return ParametricLine(two.a, two.b - two.a)
	else:
		raise UnsupportedConversionError('no parametric form for {}'.format(type(line).__name__))

def line_as_implicit(line, plane: Plane=Plane.XY) -> ImplicitLine:
	''' Implicit form of a line lying in `plane`, the coefficients are the unit normal of the plane containing the line and the normal of `plane` '''
	if isinstance(line, ImplicitLine) and line.plane == plane:
		return line
	elif isline(line):
		two = line_as_two_point(line)
		prec = tolerance(norminf(two.a), norminf(two.b))
		if abs(plane.distance(two.a)) > prec or abs(plane.distance(two.b)) > prec:
			raise UnsupportedConversionError('line does not lie in the supporting plane', line)
		n = normalize(cross(two.b - two.a, plane.normal))
		return ImplicitLine(n.x, n.y, n.z, -dot(n, two.a), plane)
	else:
		raise UnsupportedConversionError('no implicit form for {}'.format(type(line).__name__))

def project_line_to_plane(line, plane: Plane) -> TwoPointLine:
	''' Orthogonal projection of the line on the plane, as a two-point line '''
	two = line_as_two_point(line)
	a = project_point_to_plane(two.a, plane)
	b = project_point_to_plane(two.b, plane)
	if not distance(a, b) > settings.primitives['precision'] * two.length:
		raise DegenerateProjectionError('line is parallel to the plane normal, its projection is a point', line)
	return TwoPointLine(a, b)

def distance_point_line(point, line) -> float:
	''' Distance from a point to the infinite line '''
	two = line_as_two_point(line)
	return distance_pa(tovec(point), (two.a, two.b - two.a))


def _check_count(segment_count):
	if isinstance(segment_count, bool) or not isinstance(segment_count, Integral) or segment_count < 1:
		raise InvalidArgumentError('segment count must be an integer >= 1, not {}'.format(repr(segment_count)))

def arc_to_polyline(arc: Arc, segment_count: int) -> '[TwoPointLine]':
	''' Subdivide the arc in `segment_count` consecutive chords

		Each point is the start vector rotated around the arc axis by a multiple of `angle/segment_count`, so there is no accumulated drift. The first chord starts exactly at `arc.start`, the last ends exactly at `arc.end` and consecutive chords share their common point.
	'''
	_check_count(segment_count)
	pts = arc.points(segment_count)
	return [TwoPointLine(pts[i], pts[i+1])	for i in range(segment_count)]

def circle_to_polyline(circle: Circle, segment_count: int) -> '[TwoPointLine]':
	''' Subdivide the circle in `segment_count` chords forming a closed polygon '''
	_check_count(segment_count)
	if segment_count < 2:
		raise InvalidArgumentError('a circle needs at least 2 segments')
	pts = [circle.point(2*pi * i/segment_count)	for i in range(segment_count)]
	pts.append(pts[0])
	return [TwoPointLine(pts[i], pts[i+1])	for i in range(segment_count)]

def generate_offset_quad(line, plane: Plane, width: float) -> '[vec3]':
	''' Rectangle of the given width centered on the line projected on `plane`, as 6 points (two triangles)

		The rectangle lies in the plane, its triangles are counter clockwise seen from the plane normal. This is the ribbon geometry used to render a line with a thickness.
	'''
	if not width > 0:
		raise InvalidArgumentError('ribbon width must be strictly positive, not {}'.format(width))
	segment = project_line_to_plane(line, plane)
	a, b = segment.a, segment.b
	o = normalize(cross(plane.normal, b - a)) * (width/2)
	return [a-o, b-o, b+o,  a-o, b+o, a+o]
