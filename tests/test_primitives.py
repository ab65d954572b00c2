from pytest import approx, raises
from sketchkernel import *
from sketchkernel.primitives import tolerance
from . import vclose


def test_plane_normal():
	for normal in [vec3(0,0,2), vec3(1,1,1), vec3(3,-4,0), vec3(1e-3,0,0), (0,5,5)]:
		plane = normalize_plane(normal, vec3(1,2,3))
		assert length(plane.normal) == approx(1, abs=1e-12)
		assert dot(plane.normal, tovec(normal)) > 0
	for normal in [vec3(0), vec3(1e-20,0,0), vec3(nan,0,0)]:
		with raises(DegenerateInputError):
			normalize_plane(normal)

def test_plane_constants():
	assert Plane.XY.normal == Z
	assert Plane.XZ.normal == Y
	assert Plane.YZ.normal == X
	assert Plane.XY.center == O
	# attributes are read only copies
	n = Plane.XY.normal
	n.x = 1
	assert Plane.XY.normal == Z
	with raises(AttributeError):
		Plane.XY.normal = X

def test_plane_base():
	assert Plane.XY.base() == (X, Y, Z)
	assert Plane.XZ.base() == (X, -Z, Y)
	assert Plane.YZ.base() == (Y, Z, X)
	x,y,z = Plane(vec3(1,2,3)).base()
	assert dot(x,y) == approx(0, abs=1e-12)
	assert vclose(cross(x,y), z, 1e-12)

def test_project_point():
	assert project_point_to_plane(vec3(1,2,3), Plane.XY) == vec3(1,2,0)
	planes = [Plane.XY, Plane.YZ, Plane(vec3(1,2,3), vec3(1,1,1)), Plane(vec3(-1,0,0.1), vec3(0,5,-2))]
	points = [vec3(0), vec3(1,2,3), vec3(-4,0.5,12), vec3(1e3,-1e3,7)]
	for plane in planes:
		for p in points:
			once = project_point_to_plane(p, plane)
			assert plane.distance(once) == approx(0, abs=1e-9)
			assert vclose(project_point_to_plane(once, plane), once, 1e-9)

def test_line_as_two_point():
	line = line_as_two_point(ParametricLine(vec3(1,1,0), vec3(2,0,0)))
	assert line.a == vec3(1,1,0)
	assert line.b == vec3(3,1,0)

	line = line_as_two_point(ImplicitLine(0, 1, 0, -2))
	assert vclose(line.a, vec3(0,2,0))
	assert vclose(line.b, vec3(1,2,0))

	line = TwoPointLine(vec3(0), vec3(1))
	assert line_as_two_point(line) is line

	with raises(UnsupportedConversionError):
		line_as_two_point(ParametricLine(vec3(1), vec3(0)))
	with raises(UnsupportedConversionError):
		line_as_two_point(ImplicitLine(0, 0, 0, 1))
	# plane parallel to the supporting plane
	with raises(UnsupportedConversionError):
		line_as_two_point(ImplicitLine(0, 0, 1, -1))
	with raises(UnsupportedConversionError):
		line_as_two_point('not a line')
	with raises(DegenerateInputError):
		TwoPointLine(vec3(1,2,3), vec3(1,2,3))

def test_line_conversions():
	line = TwoPointLine(vec3(0,2,0), vec3(1,2,0))
	implicit = line_as_implicit(line)
	assert implicit.plane == Plane.XY
	back = line_as_two_point(implicit)
	assert distance_point_line(line.a, back) == approx(0, abs=1e-12)
	assert distance_point_line(line.b, back) == approx(0, abs=1e-12)

	parametric = line_as_parametric(line)
	assert parametric.p == line.a
	assert parametric.v == line.b - line.a
	assert parametric(1) == line.b
	assert vclose(line_as_parametric(implicit)(0.5), back(0.5))

	with raises(UnsupportedConversionError):
		line_as_implicit(TwoPointLine(vec3(0,0,0), vec3(0,0,1)))
	with raises(UnsupportedConversionError):
		line_as_parametric(42)

def test_no_aliasing():
	v = vec3(1,2,3)
	line = TwoPointLine(v, vec3(0))
	arc = Arc(v, 1, v+X, v+Y)
	v.x = 5
	assert line.a == vec3(1,2,3)
	assert arc.center == vec3(1,2,3)

def test_project_line():
	line = project_line_to_plane(TwoPointLine(vec3(0,0,1), vec3(1,0,5)), Plane.XY)
	assert line.a == vec3(0,0,0)
	assert line.b == vec3(1,0,0)
	with raises(DegenerateProjectionError):
		project_line_to_plane(TwoPointLine(vec3(1,1,0), vec3(1,1,3)), Plane.XY)

def test_arc():
	arc = Arc(O, 1, X, Y)
	assert arc.axis == Z
	assert arc.angle == approx(pi/2)
	assert arc.length == approx(pi/2)
	assert Arc(O, 1, X, Y, CW).angle == approx(3*pi/2)
	assert Arc(O, 1, X, -X, normal=Z).angle == approx(pi)
	assert Arc(O, 1, X, -X, CW, normal=Z).angle == approx(pi)

	assert arc.contains(normalize(vec3(1,1,0)))
	assert not arc.contains(-X)
	assert not arc.contains(vec3(0.5,0.5,0))
	assert Arc(O, 1, X, Y, CW).contains(-X)

	# without normal, CW keeps the axis and takes the long way
	assert vclose(Arc(O, 1, X, Y, CW).point(0.5), vec3(-sqrt(2)/2, -sqrt(2)/2, 0))
	short = Arc(O, 1, X, Y, CW, normal=-Z)
	assert short.angle == approx(pi/2)
	assert short.contains(normalize(vec3(1,1,0)))
	assert not short.contains(-X)

	reverse = arc.reverse()
	assert reverse.start == Y and reverse.end == X
	assert reverse.direction is CW
	assert reverse.angle == approx(arc.angle)

	with raises(DegenerateInputError):
		Arc(O, 0, X, Y)
	with raises(InvalidArgumentError):
		Arc(O, 1, X, 2*Y)
	with raises(DegenerateInputError):
		Arc(O, 1, X, X)
	# half circle has no defined plane without normal
	with raises(DegenerateInputError):
		Arc(O, 1, X, -X)
	with raises(InvalidArgumentError):
		Arc(O, 1, X, Y, normal=X)

def test_arc_to_polyline():
	arcs = [
		Arc(O, 1, X, Y),
		Arc(O, 1, X, Y, CW),
		Arc(vec3(1,2,3), 2.5, vec3(3.5,2,3), vec3(1,2,5.5)),
		Arc(O, 1, X, -X, normal=-Z),
		]
	for arc in arcs:
		for n in (1, 2, 5, 16):
			chords = arc_to_polyline(arc, n)
			assert len(chords) == n
			assert chords[0].a == arc.start
			assert vclose(chords[-1].b, arc.end, tolerance(arc.radius))
			for i in range(n-1):
				assert chords[i].b == chords[i+1].a
			for chord in chords:
				assert distance(chord.b, arc.center) == approx(arc.radius)

	middle = arc_to_polyline(Arc(O, 1, X, Y), 2)[0].b
	assert vclose(middle, vec3(sqrt(2)/2, sqrt(2)/2, 0))
	middle = arc_to_polyline(Arc(O, 1, X, Y, CW), 2)[0].b
	assert vclose(middle, vec3(-sqrt(2)/2, -sqrt(2)/2, 0))
	middle = arc_to_polyline(Arc(O, 1, X, -X, normal=-Z), 2)[0].b
	assert vclose(middle, -Y)

	for n in (0, -1, 1.5, True):
		with raises(InvalidArgumentError):
			arc_to_polyline(Arc(O, 1, X, Y), n)

def test_circle_to_polyline():
	chords = circle_to_polyline(Circle(vec3(1,0,0), 2), 8)
	assert len(chords) == 8
	assert chords[-1].b == chords[0].a
	for chord in chords:
		assert distance(chord.a, vec3(1,0,0)) == approx(2)
	with raises(InvalidArgumentError):
		circle_to_polyline(Circle(O, 1), 1)
	with raises(DegenerateInputError):
		Circle(O, -1)

def test_generate_offset_quad():
	quad = generate_offset_quad(TwoPointLine(vec3(0,0,0), vec3(1,0,0)), Plane.XY, 0.2)
	assert len(quad) == 6
	expected = [(0,-0.1), (1,-0.1), (1,0.1), (0,-0.1), (1,0.1), (0,0.1)]
	for p, e in zip(quad, expected):
		assert vclose(p, e)
	# triangles are counter clockwise seen from the normal
	for a,b,c in (quad[0:3], quad[3:6]):
		assert dot(cross(b-a, c-a), Z) > 0

	# the line is projected first
	quad = generate_offset_quad(TwoPointLine(vec3(0,0,1), vec3(0,2,3)), Plane.XY, 1)
	assert all(p.z == approx(0)  for p in quad)
	assert distance(quad[0], quad[5]) == approx(1)

	with raises(InvalidArgumentError):
		generate_offset_quad(TwoPointLine(vec3(0), X), Plane.XY, 0)
	with raises(DegenerateProjectionError):
		generate_offset_quad(TwoPointLine(vec3(0), Z), Plane.XY, 0.1)
