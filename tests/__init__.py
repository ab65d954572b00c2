from sketchkernel.mathutils import *

def vclose(a, b, prec=1e-9) -> bool:
	''' True if the two points are closer than `prec` '''
	return distance(tovec(a), tovec(b)) <= prec

def residuals(sketch) -> list:
	''' Maximum absolute residual of each relation of the sketch '''
	return [max((abs(r)  for r in relation.fit(sketch.elements, sketch.plane)), default=0.)
			for relation in sketch.relations]
