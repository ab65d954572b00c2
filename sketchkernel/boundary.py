# This file is part of pysketchkernel,  distributed under license LGPL v3

''' Boundary loops: closed, simple and oriented sequences of edges bounding a surface

	Loops are built by `assemble_loop()` from lines, arcs and polygons (nested sequences of edges). The result is only ever produced by that function, so a `BoundaryLoop` always satisfies:

		- continuity: each edge ends where the next one starts
		- closure: the last edge ends where the first one starts
		- simplicity: no two non-adjacent edges intersect
		- winding: the loop turns in the requested direction around its normal

	Example:

		>>> loop = assemble_loop([
		...		TwoPointLine(vec3(0,0,0), vec3(1,0,0)),
		...		TwoPointLine(vec3(1,0,0), vec3(1,1,0)),
		...		TwoPointLine(vec3(1,1,0), vec3(0,0,0)),
		...		], normal=Z)
		>>> loop.area
		0.5
'''

import logging
from .mathutils import *
from .primitives import (
		GeometryError, Arc, ArcDirection, CW, CCW,
		TwoPointLine, isline, line_as_two_point,
		)
from . import settings

__all__ = [
	'BoundaryLine', 'BoundaryArc', 'BoundaryPolygon', 'BoundaryLoop',
	'InvalidLoopError', 'assemble_loop', 'flatten',
	]

logger = logging.getLogger(__name__)


class InvalidLoopError(GeometryError, ValueError):
	''' A loop check failed

		Attributes:
			check:    name of the failed check: `'empty'`, `'continuity'`, `'closure'`, `'simplicity'` or `'winding'`
			indices:  indices of the offending edges in the flattened loop (a pair for continuity, closure and simplicity)
	'''
	def __init__(self, check, indices=(), message=None):
		if message is None:
			message = '{} check failed on edges {}'.format(check, tuple(indices))
		super().__init__(message)
		self.check = check
		self.indices = tuple(indices)


class BoundaryLine(object):
	''' Straight edge of a loop, any line representation is accepted and converted to its two-point form '''
	__slots__ = ('line',)
	def __init__(self, line):
		self.line = line_as_two_point(line)

	@property
	def start(self) -> vec3:
		return self.line.a

	@property
	def end(self) -> vec3:
		return self.line.b

	def reverse(self) -> 'BoundaryLine':
		return BoundaryLine(self.line.reverse())

	def box(self) -> Box:
		return self.line.box()

	def points(self) -> list:
		return [self.line.a, self.line.b]

	def __repr__(self):
		return 'BoundaryLine({}, {})'.format(self.line.a, self.line.b)


class BoundaryArc(object):
	''' Circular edge of a loop '''
	__slots__ = ('arc',)
	def __init__(self, arc: Arc):
		if not isinstance(arc, Arc):
			raise TypeError('expected an Arc, not {}'.format(type(arc).__name__))
		self.arc = arc

	@property
	def start(self) -> vec3:
		return self.arc.start

	@property
	def end(self) -> vec3:
		return self.arc.end

	@property
	def travel(self) -> vec3:
		''' Axis around which the arc turns positively from start to end '''
		return self.arc.axis  if self.arc.direction is CCW else  -self.arc.axis

	def reverse(self) -> 'BoundaryArc':
		return BoundaryArc(self.arc.reverse())

	def box(self) -> Box:
		return self.arc.box()

	def points(self, div=16) -> list:
		return self.arc.points(div)

	def __repr__(self):
		return 'BoundaryArc({})'.format(self.arc)


class BoundaryPolygon(object):
	''' Ordered group of boundary elements, possibly containing other polygons

		It is flattened into its primitive edges by `assemble_loop()`, it is not required to be closed on its own.
	'''
	__slots__ = ('elements',)
	def __init__(self, elements=()):
		self.elements = [boundary_element(e)  for e in elements]

	@classmethod
	def from_points(cls, points, closed=False) -> 'BoundaryPolygon':
		''' Polygon of straight edges joining the given points, `closed` adds the edge from the last point to the first '''
		points = [tovec(p)  for p in points]
		if closed:
			points.append(points[0])
		return cls(BoundaryLine(TwoPointLine(points[i], points[i+1]))  for i in range(len(points)-1))

	def __len__(self):
		return len(self.elements)

	def __iter__(self):
		return iter(self.elements)

	def __repr__(self):
		return 'BoundaryPolygon({})'.format(self.elements)


def boundary_element(obj):
	''' Boundary element for the given primitive, boundary elements are returned as is '''
	if isinstance(obj, (BoundaryLine, BoundaryArc, BoundaryPolygon)):	return obj
	elif isinstance(obj, Arc):		return BoundaryArc(obj)
	elif isline(obj):				return BoundaryLine(obj)
	elif isinstance(obj, (list, tuple)):	return BoundaryPolygon(obj)
	raise TypeError('cannot make a boundary element from {}'.format(type(obj).__name__))


class BoundaryLoop(object):
	''' Validated closed loop of edges, created by `assemble_loop()`

		Attributes:
			edges:    list of `BoundaryLine` and `BoundaryArc`
			normal:   unit normal of the loop plane, the winding is relative to it
			winding:  `CW` or `CCW`
			area:     absolute area enclosed by the loop
	'''
	__slots__ = ('edges', 'normal', 'winding', 'area')
	def __init__(self, edges, normal, winding, area):
		self.edges = edges
		self.normal = normal
		self.winding = winding
		self.area = area

	def points(self) -> list:
		''' Start point of every edge '''
		return [e.start  for e in self.edges]

	def box(self) -> Box:
		return boundingbox(e.box()  for e in self.edges)

	def __len__(self):
		return len(self.edges)

	def __iter__(self):
		return iter(self.edges)

	def __getitem__(self, index):
		return self.edges[index]

	def __repr__(self):
		return '<BoundaryLoop {} edges, {}, area {:.5g}>'.format(len(self.edges), self.winding.name, self.area)


def flatten(elements) -> list:
	''' Primitive edges of the given elements, polygons are expanded in place with their own order '''
	edges = []
	end = object()
	stack = [iter(elements)]
	while stack:
		element = next(stack[-1], end)
		if element is end:
			stack.pop()
			continue
		element = boundary_element(element)
		if isinstance(element, BoundaryPolygon):
			stack.append(iter(element.elements))
		else:
			edges.append(element)
	return edges


def assemble_loop(elements, normal=None, winding=CCW, closure=None) -> BoundaryLoop:
	''' Validate the given elements as a loop and return it oriented with the requested winding

		Args:
			elements:   sequence of boundary elements, lines, arcs or nested sequences of them
			normal:     reference normal for the winding, if not given the loop area normal is used, oriented toward the positive side of its dominant axis
			winding:    `CW` or `CCW` relative to the normal. A loop turning the other way is reversed as a whole.
			closure:    maximum distance between the end of an edge and the start of the next, defaults to `settings.boundary['closure']`

		Raise:  `InvalidLoopError` with the name of the failed check and the indices of the offending edges
	'''
	if closure is None:		closure = settings.boundary['closure']
	winding = ArcDirection(winding)
	edges = flatten(elements)
	if not edges:
		raise InvalidLoopError('empty', (), 'a loop needs at least one edge')

	check_continuity(edges, closure)
	n = len(edges)
	if distance(edges[-1].end, edges[0].start) > closure:
		raise InvalidLoopError('closure', (n-1, 0),
			'loop is not closed: edge {} ends {:.3g} away from the start of edge 0'.format(
				n-1, distance(edges[-1].end, edges[0].start)))

	if normal is None:
		normal = loop_normal(edges)
		plane = normal  if length2(normal) else  support_normal(edges, closure)
	else:
		normal = plane = safenormalize(tovec(normal))

	# crossings are reported before a null area
	if length2(plane):
		check_simplicity(edges, plane, closure)
	if not length2(normal):
		raise InvalidLoopError('winding', range(n), 'loop encloses no area, its normal is undefined')

	area = loop_area(edges, normal)
	if abs(area) <= NUMPREC * max(1., *(length2(e.box().width)  for e in edges)):
		raise InvalidLoopError('winding', range(n), 'loop encloses no area around {}'.format(normal))
	if (area > 0) != (winding is CCW):
		logger.debug('reversing loop of %d edges for %s winding', n, winding.name)
		edges = [e.reverse()  for e in reversed(edges)]
		check_continuity(edges, closure)
	loop = BoundaryLoop(edges, normal, winding, abs(area))
	logger.debug('assembled %s', loop)
	return loop


def check_continuity(edges, closure):
	for i in range(len(edges)-1):
		gap = distance(edges[i].end, edges[i+1].start)
		if gap > closure:
			raise InvalidLoopError('continuity', (i, i+1),
				'edge {} ends {:.3g} away from the start of edge {}'.format(i, gap, i+1))

def loop_normal(edges) -> vec3:
	''' Area normal of the loop (Newell method), oriented toward the positive side of its dominant axis, null if the loop is flat '''
	pts = [p  for e in edges  for p in e.points()[:-1]]
	area = vec3(0)
	for i in range(len(pts)):
		area += cross(pts[i-1], pts[i])
	normal = safenormalize(area)
	if normal[imax(glm.abs(normal))] < 0:
		normal = -normal
	return normal

def support_normal(edges, prec) -> vec3:
	''' Normal of the plane through the first non aligned edge points, null if all points are aligned

		Unlike `loop_normal` it does not depend on the enclosed area, so it is defined for crossing loops.
	'''
	pts = [p  for e in edges  for p in e.points()[:-1]]
	o = pts[0]
	u = None
	for p in pts[1:]:
		if u is None:
			if distance(p, o) > prec:
				u = p - o
		elif length(cross(u, p - o)) > prec * length(u):
			return normalize(cross(u, p - o))
	return vec3(0)

def loop_area(edges, normal) -> float:
	''' Signed area enclosed by the loop, positive when it turns counter clockwise around `normal` '''
	o = edges[0].start
	area = 0.
	for e in edges:
		area += 0.5 * dot(cross(e.start - o, e.end - o), normal)
		if isinstance(e, BoundaryArc):
			# circular segment between the chord and the arc
			angle = e.arc.angle
			segment = 0.5 * e.arc.radius**2 * (angle - sin(angle))
			area += segment  if dot(e.travel, normal) > 0 else  -segment
	return area


def isplanar(edges, normal, prec) -> bool:
	''' True if all edges lie in the plane of the first edge start with the given normal '''
	o = edges[0].start
	for e in edges:
		if abs(dot(e.start - o, normal)) > prec or abs(dot(e.end - o, normal)) > prec:
			return False
		if isinstance(e, BoundaryArc):
			if abs(dot(e.arc.center - o, normal)) > prec or length(cross(e.arc.axis, normal)) > NUMPREC**0.5:
				return False
	return True

def check_simplicity(edges, normal, closure):
	''' Raise if two non-adjacent edges intersect, boxes prune the pairs before the exact tests '''
	n = len(edges)
	planar = isplanar(edges, normal, closure)
	boxes = [e.box().offset(closure)  for e in edges]
	for i in range(n):
		for j in range(i+2, n):
			if i == 0 and j == n-1:
				continue
			if not boxes[i].intersects(boxes[j]):
				continue
			if planar:		hit = intersect(edges[i], edges[j], closure)
			else:			hit = intersect_chords(edges[i], edges[j], closure)
			if hit:
				raise InvalidLoopError('simplicity', (i, j), 'edges {} and {} intersect'.format(i, j))

def intersect(e1, e2, prec) -> bool:
	''' Exact intersection test of two coplanar edges, within distance `prec` '''
	if isinstance(e1, BoundaryLine) and isinstance(e2, BoundaryLine):
		return distance_ee((e1.start, e1.end), (e2.start, e2.end)) <= prec
	elif isinstance(e1, BoundaryLine):
		return intersect_line_arc(e1.start, e1.end, e2.arc, prec)
	elif isinstance(e2, BoundaryLine):
		return intersect_line_arc(e2.start, e2.end, e1.arc, prec)
	else:
		return intersect_arc_arc(e1.arc, e2.arc, prec)

def intersect_line_arc(a, b, arc, prec) -> bool:
	''' Intersection of the segment `(a,b)` with a coplanar arc '''
	c, r = arc.center, arc.radius
	d = b - a
	f = a - c
	# solve  |f + t*d| = r
	qa = dot(d,d)
	qb = 2*dot(f,d)
	qc = dot(f,f) - r*r
	disc = qb*qb - 4*qa*qc
	foot = -qb / (2*qa)
	if disc < 0:
		if distance(a + d*foot, c) - r > prec:
			return False
		params = [foot]
	else:
		s = sqrt(disc)
		params = [(-qb - s) / (2*qa), (-qb + s) / (2*qa)]
	tol = prec / sqrt(qa)
	for t in params:
		if -tol <= t <= 1+tol and arc.contains(a + d*min(1, max(0, t)), prec):
			return True
	return False

def intersect_arc_arc(a1, a2, prec) -> bool:
	''' Intersection of two coplanar arcs '''
	v = a2.center - a1.center
	d = length(v)
	r1, r2 = a1.radius, a2.radius
	if d <= prec:
		# same center, they overlap only on the same circle
		if abs(r1 - r2) > prec:
			return False
		return (a1.contains(a2.start, prec) or a1.contains(a2.end, prec)
			or  a2.contains(a1.start, prec) or a2.contains(a1.end, prec))
	if d > r1 + r2 + prec or d < abs(r1 - r2) - prec:
		return False
	x = (d*d + r1*r1 - r2*r2) / (2*d)
	h = sqrt(max(0., r1*r1 - x*x))
	u = v/d
	w = normalize(cross(a1.axis, u))
	for p in (a1.center + u*x + w*h, a1.center + u*x - w*h):
		if a1.contains(p, prec) and a2.contains(p, prec):
			return True
	return False

def intersect_chords(e1, e2, prec) -> bool:
	''' Intersection test of two edges of a non-planar loop, arcs are approximated by chords '''
	p1 = e1.points()
	p2 = e2.points()
	for i in range(len(p1)-1):
		for j in range(len(p2)-1):
			if distance_ee((p1[i], p1[i+1]), (p2[j], p2[j+1])) <= prec:
				return True
	return False
