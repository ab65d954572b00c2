'''	 The settings module holds dictionaries for each aspect of the kernel.

dictionaries:
	:primitives:  default settings for primitive operations and curve resolution
	:solver:      tolerances and budgets of the sketch constraint solver
	:boundary:    tolerances of the boundary loops assembly

The kernel never reads a configuration file by itself, use `load()` explicitly to apply a file. The keyword arguments of the kernel functions always take priority over these values.
'''

from math import pi, ceil, floor, sqrt
from numbers import Integral
import yaml

# settings for primitives and their discretisation
primitives = {
	'resolution': ('div', 16),	# default curve subdivision, see `curve_resolution()`
	'precision': 1e-9,	# relative tolerance for geometric comparisons (coincident points, radius checks)
	}

# settings for the sketch solver
solver = {
	'precision': 1e-9,	# maximum absolute residual of a solved sketch
	'maxiter': 100,	# iteration budget of a solve
	'max_increment': 0.3,	# maximum change of one parameter in a single iteration
	'damping': 1e-9,	# initial damping factor of the least squares steps
	'delta': 1e-7,	# finite differentiation interval for the jacobian
	'branches': 4,	# maximum number of ambiguous tangencies explored exhaustively
	}

# settings for boundary loops
boundary = {
	'closure': 1e-6,	# maximum gap between consecutive edges of a loop
	}

settings = {'primitives':primitives, 'solver':solver, 'boundary':boundary}


def load(file):
	''' Load the settings directly in this module, from the specified file or stream '''
	if isinstance(file, str):
		with open(file, 'r') as stream:
			changes = yaml.safe_load(stream)
	else:
		changes = yaml.safe_load(file)
	def update(dst, src):
		for key in dst:
			if key in src:
				if isinstance(dst[key], dict) and isinstance(src[key], dict):
					update(dst[key], src[key])
				elif isinstance(dst[key], tuple):	dst[key] = tuple(src[key])
				else:
					dst[key] = src[key]
	update(settings, changes or {})

def dump(file):
	''' Write the current settings into the specified file or stream '''
	content = yaml.safe_dump(
		{name: {key: list(value) if isinstance(value, tuple) else value
				for key, value in section.items()}
			for name, section in settings.items()},
		default_flow_style=None, width=40, indent=4)
	if isinstance(file, str):
		with open(file, 'w') as stream:
			stream.write(content)
	else:
		file.write(content)


def curve_resolution(length, angle, param=None) -> int:
	''' Return the subdivision number for a curve, using the given or setting specification

		:length:  is the curvilign length of the curve
		:angle:   is the integral of the absolute curvature (total rotation angle)
		:param:   a positive integer (fixed amount of segments) or a tuple `(kind, value)`

		Specification format:

			16              # fixed amount of 16 segments
			('div', 16)     # fixed amount of 16 segments
			('m', 0.1)      # maximum segment length is 0.1
			('rad', 0.6)    # max polygon angle is 0.6 rad
			('radm', 0.6)
			('sqradm', 0.6)
	'''
	from .primitives import InvalidArgumentError
	if param is None:	param = primitives['resolution']
	if isinstance(param, Integral) and not isinstance(param, bool):
		if param < 1:
			raise InvalidArgumentError('segment count must be a positive integer, not {}'.format(param))
		return int(param)
	try:
		kind, prec = param
	except (TypeError, ValueError):
		raise InvalidArgumentError('invalid resolution specification: {}'.format(repr(param)))
	if not prec > 0:
		raise InvalidArgumentError('resolution value must be positive, not {}'.format(repr(prec)))
	if kind == 'div':
		if int(prec) != prec:
			raise InvalidArgumentError('segment count must be an integer, not {}'.format(repr(prec)))
		return int(prec)
	elif kind == 'm':
		res = ceil(length / prec)
	elif kind == 'rad':
		res = ceil(angle / prec)
	elif kind == 'radm':
		res = ceil(length*angle / prec)
	elif kind == 'sqradm':
		res = ceil(sqrt(length*angle) / prec)
	else:
		raise InvalidArgumentError("unknown type for resolution: {}".format(repr(kind)))
	res = max(res, floor(angle * 2/pi), 1)
	return int(res)
