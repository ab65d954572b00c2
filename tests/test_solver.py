from pytest import approx, raises
from sketchkernel import *
from sketchkernel import settings
from . import vclose, residuals


def test_no_relation():
	sketch = Sketch()
	sketch.add(SketchPoint(vec3(1,2,1)))
	sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,1,0))))
	sketch.add(SketchArc(Arc(vec3(1,1,0), 2, vec3(3,1,0), vec3(1,3,0))))
	before = sketch.parameters()
	report = solve(sketch)
	assert report.parameters == 15
	assert report.equations == 0
	assert report.freedom == 15
	assert report.conflicts == []
	assert report.displacement == 0
	assert sketch.parameters() == before

def test_independent_lines():
	sketch = Sketch(SketchPlane.XY)
	l1 = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,0,0))))
	l2 = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(0,1,1))))
	sketch.add_relation(Horizontal(l1))
	before = sketch.parameters()
	report = sketch.solve()
	assert report.conflicts == []
	assert report.success
	assert report.freedom == 11
	assert report.redundant == 0
	assert sketch.parameters() == before
	assert sketch.element(l2).b == vec3(0,1,1)

def test_horizontal():
	sketch = Sketch()
	line = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,0.1,0))))
	sketch.add_relation(Horizontal(line))
	report = solve(sketch)
	element = sketch.element(line)
	assert element.a.y == approx(element.b.y, abs=1e-9)
	# only the equation direction moved
	assert element.a.x == approx(0)
	assert element.b.x == approx(1)
	assert report.freedom == 5
	assert report.residual <= settings.solver['precision']

def test_rectangle():
	sketch = Sketch()
	pts = [vec3(0,0,0), vec3(2,0.1,0), vec3(2.1,1,0), vec3(-0.1,1.1,0)]
	lines = [sketch.add(SketchLine(TwoPointLine(pts[i-1], pts[i])))  for i in range(4)]
	corners = [sketch.add(SketchPoint(p))  for p in pts]
	for i in range(4):
		sketch.add_relation(Coincident(corners[i], lines[i]))
		sketch.add_relation(Coincident(corners[i-1], lines[i]))
	sketch.add_relation(Horizontal(lines[1]))
	sketch.add_relation(Vertical(lines[2]))
	sketch.add_relation(Parallel(lines[1], lines[3]))
	sketch.add_relation(Perpendicular(lines[0], lines[3]))
	sketch.add_relation(Fixed(corners[0]))
	report = solve(sketch)
	assert max(residuals(sketch)) <= 1e-9
	assert abs(dot(sketch.element(lines[1]).direction, Y)) <= 1e-9
	assert abs(dot(sketch.element(lines[2]).direction, X)) <= 1e-9
	assert sketch.element(corners[0]).p == vec3(0,0,0)
	assert report.freedom > 0

def test_redundant():
	sketch = Sketch()
	line = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,0.2,0))))
	sketch.add_relation(Horizontal(line))
	sketch.add_relation(Horizontal(line))
	report = solve(sketch)
	assert report.equations == 2
	assert report.rank == 1
	assert report.redundant == 1
	assert report.conflicts == []

def test_coincident_points():
	sketch = Sketch()
	a = sketch.add(SketchPoint(vec3(1,1,0)))
	b = sketch.add(SketchPoint(vec3(1,1,0)))
	sketch.add_relation(Coincident(a, b))
	report = solve(sketch)
	assert report.conflicts == []
	assert report.iterations == 0
	assert report.freedom == 3

def test_fixed_conflict():
	sketch = Sketch()
	line = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,0.2,0))))
	sketch.add_relation(Fixed(line))
	sketch.add_relation(Horizontal(line))
	before = sketch.parameters()
	with raises(OverConstrainedError) as err:
		solve(sketch)
	assert err.value.relations == [0, 1]
	assert err.value.report.conflicts == [0, 1]
	assert sketch.parameters() == before

def test_impossible_tangent():
	sketch = Sketch()
	line = sketch.add(SketchLine(TwoPointLine(vec3(-1,2,0), vec3(1,2,0))))
	arc = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	sketch.add_relation(Fixed(line))
	sketch.add_relation(Fixed(arc))
	tangent = sketch.add_relation(Tangent(arc, line))
	before = sketch.parameters()
	with raises(OverConstrainedError) as err:
		solve(sketch)
	assert tangent in err.value.relations
	assert set(err.value.relations) == {0, 1, 2}
	assert sketch.parameters() == before

def test_tangent_line():
	sketch = Sketch()
	line = sketch.add(SketchLine(TwoPointLine(vec3(-1,5,0), vec3(1,5,0))))
	arc = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	sketch.add_relation(Fixed(line))
	sketch.add_relation(Tangent(arc, line))
	solve(sketch)
	element = sketch.element(arc)
	assert 5 - element.center.y == approx(element.radius, abs=1e-9)
	assert element.radius > 0
	assert sketch.element(line).a == vec3(-1,5,0)

def test_diverged():
	sketch = Sketch()
	line = sketch.add(SketchLine(TwoPointLine(vec3(-1,5,0), vec3(1,5,0))))
	arc = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	sketch.add_relation(Fixed(line))
	sketch.add_relation(Tangent(arc, line))
	before = sketch.parameters()
	with raises(SolverDivergedError) as err:
		solve(sketch, maxiter=2)
	assert err.value.report.iterations == 2
	assert sketch.parameters() == before

def test_inconsistent():
	sketch = Sketch()
	a = sketch.add(SketchPoint(vec3(0,0,0)))
	b = sketch.add(SketchPoint(vec3(1,0,0)))
	p = sketch.add(SketchPoint(vec3(0.5,1,0)))
	other = sketch.add(SketchLine(TwoPointLine(vec3(5,5,0), vec3(6,6,0))))
	sketch.add_relation(Fixed(a))
	sketch.add_relation(Fixed(b))
	sketch.add_relation(Coincident(p, a))
	sketch.add_relation(Coincident(p, b))
	sketch.add_relation(Horizontal(other))
	before = sketch.parameters()
	with raises(OverConstrainedError) as err:
		solve(sketch)
	# the unrelated relation is not part of the conflict
	assert err.value.relations == [0, 1, 2, 3]
	assert sketch.parameters() == before

def test_tangent_external():
	sketch = Sketch()
	a1 = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	a2 = sketch.add(SketchArc(Arc(vec3(2.5,0,0), 1, vec3(3.5,0,0), vec3(2.5,1,0))))
	sketch.add_relation(Fixed(a1))
	tangent = sketch.add_relation(Tangent(a2, a1))
	report = solve(sketch)
	assert report.modes == {tangent: EXTERNAL}
	e1, e2 = sketch.element(a1), sketch.element(a2)
	assert distance(e1.center, e2.center) == approx(e1.radius + e2.radius, abs=1e-9)

def test_tangent_internal():
	sketch = Sketch()
	a1 = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	a2 = sketch.add(SketchArc(Arc(vec3(0.2,0,0), 0.5, vec3(0.7,0,0), vec3(0.2,0.5,0))))
	sketch.add_relation(Fixed(a1))
	tangent = sketch.add_relation(Tangent(a2, a1))
	report = solve(sketch)
	assert report.modes == {tangent: INTERNAL}
	e1, e2 = sketch.element(a1), sketch.element(a2)
	assert distance(e1.center, e2.center) == approx(abs(e1.radius - e2.radius), abs=1e-9)

def test_tangent_explicit_mode():
	sketch = Sketch()
	a1 = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	a2 = sketch.add(SketchArc(Arc(vec3(2.5,0,0), 1, vec3(3.5,0,0), vec3(2.5,1,0))))
	sketch.add_relation(Fixed(a1))
	sketch.add_relation(Tangent(a2, a1, INTERNAL))
	report = solve(sketch)
	assert report.modes == {}
	e1, e2 = sketch.element(a1), sketch.element(a2)
	assert distance(e1.center, e2.center) == approx(abs(e1.radius - e2.radius), abs=1e-9)

def test_problem():
	sketch = Sketch()
	a = sketch.add(SketchPoint(vec3(0,0,0)))
	line = sketch.add(SketchLine(TwoPointLine(vec3(1,1,0), vec3(2,2,0))))
	sketch.add_relation(Fixed(a))
	sketch.add_relation(Coincident(a, line))
	problem = Problem(sketch)
	assert problem.parameters == 6
	assert problem.equations == 3
	assert problem.fixed == {a}
	x = problem.initial()
	assert len(problem.evaluate(x)) == 3
	assert problem.jacobian(x).shape == (3, 6)
	# building a problem never changes the sketch
	assert sketch.element(line).a == vec3(1,1,0)
	sketch.add_relation(Horizontal(line))
	with raises(SolveError):
		problem.apply(x)

def test_collapsed_arc():
	sketch = Sketch()
	line = sketch.add(SketchLine(TwoPointLine(vec3(-2,0,0), vec3(2,0,0))))
	arc = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	sketch.add_relation(Fixed(line))
	tangent = sketch.add_relation(Tangent(arc, line))
	before = sketch.parameters()
	# the only reachable tangency shrinks the arc to its center
	with raises(OverConstrainedError) as err:
		solve(sketch)
	assert tangent in err.value.relations
	assert err.value.report.conflicts == err.value.relations
	assert sketch.parameters() == before
	assert sketch.element(arc).radius == 1
	assert len(sketch.lines()) == 17

def test_colinear():
	sketch = Sketch()
	l1 = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,0,0))))
	l2 = sketch.add(SketchLine(TwoPointLine(vec3(0,0.5,0), vec3(1,0.6,0))))
	sketch.add_relation(Fixed(l1))
	sketch.add_relation(Colinear(l1, l2))
	report = solve(sketch)
	assert max(residuals(sketch)) <= 1e-8
	element = sketch.element(l2)
	for p in (element.a, element.b):
		assert p.y == approx(0, abs=1e-8)
		assert p.z == approx(0, abs=1e-8)
	assert element.length > 0.5
	assert report.freedom == 2

def test_coradial():
	sketch = Sketch()
	a1 = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	a2 = sketch.add(SketchArc(Arc(vec3(0.2,0.1,0), 1.5, vec3(1.7,0.1,0), vec3(0.2,1.6,0))))
	sketch.add_relation(Fixed(a1))
	sketch.add_relation(Coradial(a2, a1))
	solve(sketch)
	assert max(residuals(sketch)) <= 1e-8
	element = sketch.element(a2)
	assert vclose(element.center, O, 1e-8)
	assert element.radius == approx(1, abs=1e-8)
	# the angles are not involved
	assert element.alpha == 0
	assert element.beta == approx(pi/2)

def test_concentric():
	sketch = Sketch()
	center = sketch.add(SketchPoint(vec3(1,2,0)))
	arc = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	sketch.add_relation(Fixed(center))
	sketch.add_relation(Concentric(arc, center))
	solve(sketch)
	assert max(residuals(sketch)) <= 1e-8
	element = sketch.element(arc)
	assert vclose(element.center, vec3(1,2,0), 1e-8)
	assert element.radius == 1
	assert vclose(element.start, vec3(2,2,0), 1e-8)

def test_midpoint():
	sketch = Sketch()
	point = sketch.add(SketchPoint(vec3(0,0,0)))
	line = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(2,2,0))))
	sketch.add_relation(Fixed(line))
	sketch.add_relation(Midpoint(point, line))
	report = solve(sketch)
	assert max(residuals(sketch)) <= 1e-8
	assert vclose(sketch.element(point).p, vec3(1,1,0), 1e-8)
	assert report.freedom == 0

def test_intersection():
	sketch = Sketch()
	point = sketch.add(SketchPoint(vec3(0.9,0.2,0)))
	line = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,0,0))))
	arc = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	sketch.add_relation(Fixed(line))
	sketch.add_relation(Fixed(arc))
	sketch.add_relation(Intersection(point, line, arc))
	solve(sketch)
	assert max(residuals(sketch)) <= 1e-8
	assert vclose(sketch.element(point).p, X, 1e-8)

def test_point_on_arc():
	sketch = Sketch()
	point = sketch.add(SketchPoint(vec3(2,2,0)))
	arc = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	sketch.add_relation(Fixed(arc))
	sketch.add_relation(Coincident(point, arc))
	solve(sketch)
	assert max(residuals(sketch)) <= 1e-8
	# moved straight toward the center
	assert vclose(sketch.element(point).p, vec3(sqrt(2)/2, sqrt(2)/2, 0), 1e-8)

def test_equal():
	sketch = Sketch()
	l1 = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(2,0,0))))
	l2 = sketch.add(SketchLine(TwoPointLine(vec3(0,1,0), vec3(1,1,0))))
	a1 = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	a2 = sketch.add(SketchArc(Arc(vec3(3,0,0), 0.5, vec3(3.5,0,0), vec3(3,0.5,0))))
	sketch.add_relation(Fixed(l1))
	sketch.add_relation(Fixed(a1))
	sketch.add_relation(Equal(l2, l1))
	sketch.add_relation(Equal(a2, a1))
	solve(sketch)
	assert max(residuals(sketch)) <= 1e-8
	line = sketch.element(l2)
	assert line.length == approx(2, abs=1e-8)
	assert line.a.y == 1 and line.b.y == 1
	arc = sketch.element(a2)
	assert arc.radius == approx(1, abs=1e-8)
	assert arc.center == vec3(3,0,0)

def test_negative_radius():
	sketch = Sketch()
	ref = sketch.add(SketchArc(Arc(O, 2, 2*X, 2*Y)))
	arc = sketch.add(SketchArc(Arc(O, 1, X, Y)))
	# a radius that went negative during an earlier edit
	sketch.element(arc).assign([0, 0, 0, -1, 0, pi/2])
	start = sketch.element(arc).start
	sketch.add_relation(Fixed(ref))
	sketch.add_relation(Equal(arc, ref))
	solve(sketch)
	assert max(residuals(sketch)) <= 1e-8
	element = sketch.element(arc)
	assert element.radius == approx(2, abs=1e-8)
	assert element.alpha == approx(pi)
	assert element.beta == approx(3*pi/2)
	# the solve kept the arc on the same side of its center
	assert vclose(element.start, 2*normalize(start), 1e-8)
	assert vclose(element.end, vec3(0,-2,0), 1e-8)
