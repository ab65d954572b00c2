# This file is part of pysketchkernel,  distributed under license LGPL v3

''' Group of functions and math classes of the kernel

	All the kernel vectors are glm double precision vectors, `vec3` is the common name for points and directions.
'''

import glm
from glm import *
import math
from math import pi, inf, nan, atan2
from builtins import max, min, any, all, round, abs

# alias definitions
vec3 = dvec3

# numerical precision of floats used
NUMPREC = 1e-13	# float64 here, so 14 decimals
COMPREC = 1-NUMPREC


# common base definition, for end user
O = vec3(0,0,0)
X = vec3(1,0,0)
Y = vec3(0,1,0)
Z = vec3(0,0,1)


def tovec(p) -> vec3:
	''' Copy of the given coordinates as a `vec3`, accepts vectors, tuples, lists and numpy arrays '''
	if isinstance(p, (dvec3, fvec3)):
		return vec3(p)
	if len(p) == 2:
		return vec3(float(p[0]), float(p[1]), 0.)
	return vec3(float(p[0]), float(p[1]), float(p[2]))

def isfinite(x):
	''' Return false if x contains a `inf` or a `nan` '''
	if isinstance(x, (int,float)):
		return math.isfinite(x)
	return not (glm.any(isinf(x)) or glm.any(isnan(x)))

def norminf(x):
	''' Norm L infinite  ie.  `max(abs(x), abs(y), abs(z))` '''
	return max(glm.abs(x))

def project(vec, dir) -> vec3:
	''' Component of `vec` along `dir`, equivalent to :code:`dot(vec,dir) / dot(dir,dir) * dir`

		The result is not sensitive to the length of `dir`
	'''
	try:	return dot(vec,dir) / dot(dir,dir) * dir
	except ZeroDivisionError:
		if dot(vec,vec):		return vec3(nan)
		else:					return vec3(0)

def noproject(vec, dir) -> vec3:
	''' Components of `vec` not along `dir`, equivalent to :code:`vec - project(vec,dir)`

		The result is not sensitive to the length of `dir`
	'''
	return vec - project(vec,dir)

def safenormalize(v) -> vec3:
	''' Normalized vector, or the null vector when `v` has no length (where `normalize` would give nan) '''
	l = length(v)
	if l > NUMPREC:	return v/l
	return vec3(0)

def dirbase(dir, align=vec3(1,0,0)):
	''' Return a base using the given direction as z axis (and the nearer vector to align as x) '''
	x = noproject(align, dir)
	if not length2(x) > NUMPREC**2:
		align = vec3(align[2],-align[0],align[1])
		x = noproject(align, dir)
	if not length2(x) > NUMPREC**2:
		align = vec3(align[1],-align[2],align[0])
		x = noproject(align, dir)
	x = normalize(x)
	y = cross(dir, x)
	return x,y,dir


# distances:

def distance_pa(pt, axis):
	''' Point - axis distance '''
	return length(noproject(pt-axis[0], axis[1]))

def distance_pe(pt, edge):
	''' Point - edge distance '''
	dir = edge[1]-edge[0]
	l = length2(dir)
	if not l:	return distance(pt,edge[0])
	x = dot(pt-edge[0], dir)/l
	if   x < 0:	return distance(pt,edge[0])
	elif x > 1:	return distance(pt,edge[1])
	else:
		return length(noproject(pt-edge[0], dir))

def distance_ee(e1, e2):
	''' Edge - edge distance (closest points of two segments in space) '''
	d1 = e1[1]-e1[0]
	d2 = e2[1]-e2[0]
	r = e1[0]-e2[0]
	a, e = dot(d1,d1), dot(d2,d2)
	f = dot(d2,r)
	if a <= NUMPREC and e <= NUMPREC:	return distance(e1[0], e2[0])
	if a <= NUMPREC:
		return distance_pe(e1[0], e2)
	c = dot(d1,r)
	if e <= NUMPREC:
		return distance_pe(e2[0], e1)
	b = dot(d1,d2)
	denom = a*e - b*b
	s = min(1, max(0, (b*f - c*e)/denom)) if denom > NUMPREC*a*e else 0.
	t = (b*s + f)/e
	if t < 0:
		t = 0.
		s = min(1, max(0, -c/a))
	elif t > 1:
		t = 1.
		s = min(1, max(0, (b-c)/a))
	return distance(e1[0] + d1*s, e2[0] + d2*t)


#-- algorithmic functions ---------

def imax(iterable, default=None):
	''' Return the index of the max of the iterable '''
	best = default
	score = -inf
	for i,o in enumerate(iterable):
		if o >= score:
			score = o
			best = i
	if best is None:	raise IndexError('iterable is empty')
	return best


# aliases, for those who like them
Point = vec3


class Box:
	''' This class describes a box always orthogonal to the base axis, used as convex for area delimitations

		This class is independent from the dimension or number precision of the used vectors. You can for instance have a `Box` of `dvec2` as well as a box of `vec3`. However boxes with different vector types cannot interperate.

		Attributes:

			min:	vector of minimum coordinates of the box (usually bottom left corner)
			max:	vector of maximum coordinates of the box (usually top right corner)
	'''
	__slots__ = ('min', 'max')
	def __init__(self, min=None, max=None, center=vec3(0), width=vec3(-inf)):
		if min is not None and max is not None:	self.min, self.max = min, max
		else:									self.min, self.max = center-width/2, center+width/2

	@property
	def center(self) -> vec3:
		''' Mid coordinates of the box '''
		return (self.min + self.max) /2
	@property
	def width(self) -> vec3:
		''' Diagonal vector of the box '''
		return self.max - self.min

	def isvalid(self):
		''' Return True if the box defines a valid space (min coordinates <= max coordinates) '''
		return glm.all(lessThanEqual(self.min, self.max))

	def offset(self, margin) -> 'Box':
		''' Box grown by `margin` in every direction '''
		return Box(self.min - margin, self.max + margin)

	def intersects(self, other) -> bool:
		''' Return True if the two boxes share at least a point '''
		return (glm.all(lessThanEqual(self.min, other.max))
			and glm.all(lessThanEqual(other.min, self.max)))

	def union_update(self, other) -> 'self':
		''' Extend the volume of the current box to bound the given point or box '''
		if isinstance(other, (dvec3, fvec3, dvec2)):
			self.min = glm.min(self.min, other)
			self.max = glm.max(self.max, other)
		elif isinstance(other, Box):
			self.min = glm.min(self.min, other.min)
			self.max = glm.max(self.max, other.max)
		else:
			raise TypeError('unable to integrate {}'.format(type(other)))
		return self

	def __bool__(self):
		return self.isvalid()

	def __repr__(self):
		return '{}({}, {})'.format(self.__class__.__name__, repr(self.min), repr(self.max))


def boundingbox(obj) -> Box:
	''' Return a box containing the object passed
		`obj` can be a vec3, Box, object with a `box()` method, or an iterable of such objects
	'''
	if isinstance(obj, Box):					return obj
	if isinstance(obj, (dvec3, fvec3, dvec2)):	return Box(type(obj)(obj), type(obj)(obj))
	if hasattr(obj, 'box'):						return obj.box()
	if hasattr(obj, '__iter__'):
		obj = iter(obj)
		first = next(obj, None)
		if first is None:
			raise ValueError('unable to get a boundingbox from an empty iterable')
		first = boundingbox(first)
		bound = Box(type(first.min)(first.min), type(first.max)(first.max))
		for e in obj:	bound.union_update(boundingbox(e))
		return bound
	raise TypeError('unable to get a boundingbox from {}'.format(type(obj)))
