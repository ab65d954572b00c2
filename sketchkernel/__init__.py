# This file is part of pysketchkernel,  distributed under license LGPL v3

'''     pysketchkernel
		parametric sketch geometry, solved numerically

Small geometry kernel for CAD sketches, written with Python.

main concepts
-------------

- primitives are plain objects built from coordinates: planes, circles, arcs, and lines in three interchangeable representations (parametric, two-point, implicit)
- a sketch is a plane holding elements (points, lines, arcs) and relations between them. Relations reference elements by index, and the solver moves the element parameters until every relation is satisfied.
- boundary loops are closed sequences of lines and arcs, validated for continuity, closure, simplicity and winding before being handed to surfacing code
- any of these can be tessellated into straight segments for a renderer

data types
----------

math types:
* vec3    a 3D vector (with fast operations), glm double precision

primitives:
* Plane, Circle, Arc
* ParametricLine, TwoPointLine, ImplicitLine

sketches:
* Sketch, SketchPlane
* SketchPoint, SketchLine, SketchArc
* Horizontal, Vertical, Coincident, Perpendicular, Tangent, Parallel, Colinear, Coradial, Concentric, Midpoint, Intersection, Equal, Fixed

boundaries:
* BoundaryLine, BoundaryArc, BoundaryPolygon
* BoundaryLoop, made by `assemble_loop`


Examples
--------

	>>> sketch = Sketch(SketchPlane.XY)
	>>> l = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,0.1,0))))
	>>> sketch.add_relation(Horizontal(l))
	0
	>>> report = sketch.solve()
	>>> report.freedom
	5
	>>> segments = tessellate(sketch)

'''

version = '0.1.0'

from .mathutils import *
from .primitives import *
from .sketch import *
from .relations import *
from .solver import solve, Problem, SolveReport, SolveError, OverConstrainedError, SolverDivergedError
from .boundary import *
from .tessellation import tessellate, segment_buffer, ribbon_buffer
from . import settings
