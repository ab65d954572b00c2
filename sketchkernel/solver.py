# This file is part of pysketchkernel,  distributed under license LGPL v3

''' Numerical solver for the relations of a sketch

	The sketch parameters are gathered in a flat state vector, the relations give a vector of residuals and the solver searches the nearest state where all residuals vanish, with a damped least squares method (Levenberg-Marquardt).

	The outcome of a solve is one of:

		- success: the element parameters are updated and a `SolveReport` is returned. An under-constrained sketch is a success with `freedom > 0`
		- `OverConstrainedError`: the relations cannot be all satisfied, the sketch is left untouched and the error names a minimal set of conflicting relations when it can be determined
		- `SolverDivergedError`: the iteration budget ran out while the residual was still decreasing, the sketch is left untouched

	Example:

		>>> sketch = Sketch()
		>>> l = sketch.add(SketchLine(TwoPointLine(vec3(0,0,0), vec3(1,0.1,0))))
		>>> sketch.add_relation(Horizontal(l))
		>>> report = solve(sketch)
		>>> report.freedom
		5
'''

import logging
import itertools
import numpy as np
import numpy.linalg as la
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from .mathutils import *
from .primitives import GeometryError
from .sketch import SketchArc
from .relations import Tangent, Fixed, tangency, INTERNAL, EXTERNAL
from . import settings

__all__ = ['solve', 'Problem', 'SolveReport', 'SolveError', 'OverConstrainedError', 'SolverDivergedError']

logger = logging.getLogger(__name__)


class SolveError(GeometryError):
	''' Base of the solver failures, `report` holds the `SolveReport` of the failed attempt '''
	def __init__(self, message, report=None):
		super().__init__(message)
		self.report = report

class OverConstrainedError(SolveError):
	''' The relations are inconsistent, `relations` lists the indices of the conflicting relations in the sketch '''
	def __init__(self, message, relations=(), report=None):
		super().__init__(message, report)
		self.relations = list(relations)

class SolverDivergedError(SolveError):
	''' The iteration budget is exhausted before convergence '''
	pass


# iteration outcomes
SOLVED = 'solved'
STALLED = 'stalled'
EXHAUSTED = 'exhausted'


class SolveReport(object):
	''' Summary of a solve

		Attributes:
			parameters:    number of free scalar parameters
			equations:     number of scalar equations
			rank:          numerical rank of the jacobian at the final state
			freedom:       degrees of freedom left, `parameters - rank`
			redundant:     number of redundant equations, `equations - rank`
			iterations:    number of iterations done
			residual:      maximum absolute residual at the final state
			displacement:  euclidean norm of the parameters change
			conflicts:     indices of the conflicting relations, empty on success
			modes:         dict of the tangent modes chosen by the solver, by relation index
	'''
	__slots__ = ('parameters', 'equations', 'rank', 'freedom', 'redundant',
				'iterations', 'residual', 'displacement', 'conflicts', 'modes')
	def __init__(self, **kwargs):
		for name in self.__slots__:
			setattr(self, name, kwargs.get(name, 0))
		if not kwargs.get('conflicts'):	self.conflicts = []
		if not kwargs.get('modes'):		self.modes = {}

	@property
	def success(self) -> bool:
		return not self.conflicts

	def __repr__(self):
		return '<SolveReport {}>'.format(', '.join(
				'{}={}'.format(name, getattr(self, name))  for name in self.__slots__))


def rank(m, rcond=1e-6) -> int:
	''' Numerical rank of a matrix, singular values below `rcond` times the biggest one are considered null '''
	if m.size == 0:
		return 0
	s = la.svd(m, compute_uv=False)
	tol = np.amax(s) * rcond
	return int(np.sum(s > tol))


class Problem(object):
	''' Numerical problem built from a sketch for one solve

		Attributes:
			sketch:     the sketch the problem is built from, it is only modified by `apply()`
			relations:  list of `(index, relation)`, index being the relation position in the sketch
			state:      numpy array of all the element parameters at construction
			free:       indices of the free parameters in `state`
			fixed:      set of the element indices pinned by `Fixed` relations
			slots:      dict giving for each element index the range of its parameters in `state`
			rows:       for each relation the range of its residuals in the residual vector
	'''
	def __init__(self, sketch, relations=None, delta=None):
		if relations is None:
			relations = list(enumerate(sketch.relations))
		if delta is None:
			delta = settings.solver['delta']
		self.sketch = sketch
		self.plane = sketch.plane
		self.revision = sketch.revision
		self.relations = relations
		self.delta = delta

		# parameters layout
		self.slots = {}
		state = []
		for i, element in sketch.items():
			self.slots[i] = (len(state), len(state) + element.nparams)
			state.extend(element.params())
		self.state = np.array(state, float)

		# pinned parameters
		self.fixed = {relation.element  for index, relation in relations  if isinstance(relation, Fixed)}
		mask = np.ones(len(state), bool)
		for i in self.fixed:
			start, stop = self.slots[i]
			mask[start:stop] = False
		self.free = np.flatnonzero(mask)

		# equations layout
		elements = self.elements(self.state[self.free])
		self.rows = []
		count = 0
		for index, relation in relations:
			n = len(relation.fit(elements, self.plane))
			self.rows.append((count, count+n))
			count += n
		self.equations = count

	@property
	def parameters(self) -> int:
		return len(self.free)

	def initial(self) -> np.ndarray:
		''' The free parameters at construction '''
		return self.state[self.free]

	def full(self, x) -> np.ndarray:
		''' All the element parameters with the given free parameters '''
		full = self.state.copy()
		full[self.free] = x
		return full

	def elements(self, x) -> list:
		''' Elements placed at the given free parameters, indexable as the sketch elements '''
		full = self.full(x)
		elements = [None] * len(self.sketch.elements)
		for i, (start, stop) in self.slots.items():
			elements[i] = self.sketch.elements[i].variant(full[start:stop])
		return elements

	def evaluate(self, x) -> np.ndarray:
		''' Residuals vector for the given free parameters '''
		elements = self.elements(x)
		residuals = []
		for index, relation in self.relations:
			residuals.extend(relation.fit(elements, self.plane))
		return np.array(residuals, float)

	def jacobian(self, x) -> np.ndarray:
		''' Jacobian of the residuals by central finite differences '''
		jac = np.zeros((self.equations, len(x)))
		p = x.copy()
		for j in range(len(x)):
			d = self.delta * max(1., abs(x[j]))
			p[j] = x[j] + d
			above = self.evaluate(p)
			p[j] = x[j] - d
			below = self.evaluate(p)
			p[j] = x[j]
			jac[:,j] = (above - below) / (2*d)
		return jac

	def constants(self, residuals, precision) -> list:
		''' Positions of the unsatisfied relations having no free parameter '''
		found = []
		for k, (index, relation) in enumerate(self.relations):
			start, stop = self.rows[k]
			if (stop > start
			and all(e in self.fixed  for e in relation.elements)
			and np.abs(residuals[start:stop]).max() > precision):
				found.append(k)
		return found

	def pinning(self, positions) -> list:
		''' Positions of the `Fixed` relations pinning elements of the given relations '''
		elements = {e  for k in positions  for e in self.relations[k][1].elements}
		return [k  for k, (index, relation) in enumerate(self.relations)
				if isinstance(relation, Fixed) and relation.element in elements]

	def components(self) -> np.ndarray:
		''' Connected component label of each relation in the relation-element graph, pinned elements do not link relations '''
		nr = len(self.relations)
		size = nr + len(self.sketch.elements)
		rows, cols = [], []
		for k, (index, relation) in enumerate(self.relations):
			for e in relation.elements:
				if e not in self.fixed:
					rows.append(k)
					cols.append(nr + e)
		graph = coo_matrix((np.ones(len(rows)), (rows, cols)), shape=(size, size))
		count, labels = connected_components(graph, directed=False)
		return labels[:nr]

	def run(self, precision, maxiter, max_increment, damping) -> tuple:
		''' Iterate from the initial state, return `(x, iterations, error, status)` without raising '''
		x = self.initial()
		r = self.evaluate(x)
		error = np.abs(r).max(initial=0.)
		cost = r @ r
		damp = damping
		k = 0
		while error > precision:
			if not len(x):
				return x, k, error, STALLED
			if k >= maxiter:
				return x, k, error, EXHAUSTED
			k += 1
			jac = self.jacobian(x)
			grad = jac.T @ r
			hess = jac.T @ jac
			scale = max(1., np.abs(hess).max())
			# damping is increased until a step decreases the residuals
			while True:
				step = la.solve(hess + np.eye(len(x))*damp, -grad)
				big = np.abs(step).max()
				if big > max_increment:
					step *= max_increment / big
				candidate = x + step
				rc = self.evaluate(candidate)
				cc = rc @ rc
				if cc < cost*COMPREC:
					x, r, cost = candidate, rc, cc
					damp = max(damp*0.1, damping)
					break
				damp *= 10
				if damp > 1e12*scale or big <= NUMPREC*max(1., np.abs(x).max()):
					return x, k, error, STALLED
			error = np.abs(r).max()
			logger.debug('iteration %d  error %.3g  damping %.3g', k, error, damp)
		return x, k, error, SOLVED

	def attempt(self, precision, maxiter, max_increment, damping) -> str:
		''' Outcome of the problem resolution, without raising '''
		if self.constants(self.evaluate(self.initial()), precision):
			return STALLED
		return self.run(precision, maxiter, max_increment, damping)[3]

	def narrow(self, candidates, precision, maxiter, max_increment, damping) -> list:
		''' Shrink a set of inconsistent relations to a minimal inconsistent subset

			Each relation is removed in turn, it is kept out if the others remain inconsistent. When a sub-problem is not decisive, the candidates are returned unchanged.
		'''
		core = list(candidates)
		for k in candidates:
			trial = [c  for c in core  if c != k]
			if not trial:
				continue
			sub = Problem(self.sketch, [self.relations[c]  for c in trial], self.delta)
			status = sub.attempt(precision, maxiter, max_increment, damping)
			if status == EXHAUSTED:
				return list(candidates)
			if status == STALLED:
				core = trial
		return core

	def solve(self, precision=None, maxiter=None, max_increment=None, damping=None) -> tuple:
		''' Solve the problem, return `(x, report)` with the solved free parameters

			Raise `OverConstrainedError` or `SolverDivergedError` on failure, the sketch is not modified in any case.
		'''
		if precision is None:		precision = settings.solver['precision']
		if maxiter is None:			maxiter = settings.solver['maxiter']
		if max_increment is None:	max_increment = settings.solver['max_increment']
		if damping is None:			damping = settings.solver['damping']
		report = SolveReport(parameters=self.parameters, equations=self.equations)
		x0 = self.initial()

		# equations that no parameter can change
		residuals = self.evaluate(x0)
		constants = self.constants(residuals, precision)
		if constants:
			conflicts = sorted({self.relations[k][0]  for k in constants + self.pinning(constants)})
			report.residual = float(np.abs(residuals).max())
			report.conflicts = conflicts
			raise OverConstrainedError('relations {} cannot be satisfied with their pinned elements'.format(conflicts), conflicts, report)

		x, k, error, status = self.run(precision, maxiter, max_increment, damping)
		report.iterations = k
		report.residual = float(error)
		report.displacement = float(la.norm(x - x0))

		if status == EXHAUSTED:
			raise SolverDivergedError('convergence failed after {} iterations, residual is {:.3g}'.format(k, error), report)
		elif status == STALLED:
			conflicts = self.conflicts(x, precision, maxiter, max_increment, damping)
			report.conflicts = conflicts
			raise OverConstrainedError('inconsistent relations {}, residual is stuck at {:.3g}'.format(conflicts, error), conflicts, report)

		# relations only satisfied by collapsing elements
		collapsed = [i  for i, element in enumerate(self.elements(x))
						if element is not None and i not in self.fixed and element.degenerate(precision)]
		if collapsed:
			positions = [k  for k, (index, relation) in enumerate(self.relations)
						if any(e in collapsed  for e in relation.elements)]
			conflicts = sorted({self.relations[k][0]  for k in positions + self.pinning(positions)})
			report.conflicts = conflicts
			raise OverConstrainedError('relations {} collapse the elements {}'.format(conflicts, collapsed), conflicts, report)

		jac = self.jacobian(x)
		report.rank = rank(jac)
		report.freedom = report.parameters - report.rank
		report.redundant = report.equations - report.rank
		return x, report

	def conflicts(self, x, precision, maxiter, max_increment, damping) -> list:
		''' Sketch indices of the relations involved in the inconsistency found at `x` '''
		residuals = self.evaluate(x)
		unsatisfied = [k  for k, (start, stop) in enumerate(self.rows)
						if stop > start and np.abs(residuals[start:stop]).max() > precision]
		labels = self.components()
		involved = {labels[k]  for k in unsatisfied}
		candidates = [k  for k in range(len(self.relations))  if labels[k] in involved]
		candidates = sorted(set(candidates + self.pinning(candidates)))
		if not candidates:
			candidates = list(range(len(self.relations)))
		core = self.narrow(candidates, precision, maxiter, max_increment, damping)
		return sorted(self.relations[k][0]  for k in core)

	def apply(self, x):
		''' Write the given free parameters into the sketch elements '''
		if self.sketch.revision != self.revision:
			raise SolveError('the sketch relations changed since the problem was built')
		full = self.full(x)
		for i, (start, stop) in self.slots.items():
			element = self.sketch.elements[i]
			element.assign(full[start:stop])
			element.normalize()


def solve(sketch, precision=None, maxiter=None, max_increment=None, damping=None, delta=None, branches=None) -> SolveReport:
	''' Solve the relations of the sketch and update its elements

		Args:
			precision:      maximum absolute residual accepted
			maxiter:        iteration budget
			max_increment:  maximum change of a parameter in one iteration
			damping:        initial damping of the least squares steps
			delta:          finite differentiation interval
			branches:       maximum number of ambiguous arc tangencies whose internal and external configurations are all explored

		The missing arguments are taken from `settings.solver`.

		Return:  a `SolveReport`
		Raise:   `OverConstrainedError` or `SolverDivergedError`, the sketch is then left unchanged
	'''
	if branches is None:	branches = settings.solver['branches']
	relations = list(enumerate(sketch.relations))

	# tangencies between arcs whose configuration is left to the solver
	ambiguous = [k  for k, (index, relation) in enumerate(relations)
				if isinstance(relation, Tangent) and relation.mode is None
				and isinstance(sketch.elements[relation.other], SketchArc)]
	if len(ambiguous) > branches:
		choice = []
		for k in ambiguous:
			relation = relations[k][1]
			arc, other = sketch.elements[relation.arc], sketch.elements[relation.other]
			choice.append(min((EXTERNAL, INTERNAL), key=lambda mode: abs(tangency(arc, other, mode))))
		combinations = [tuple(choice)]
	else:
		combinations = list(itertools.product((EXTERNAL, INTERNAL), repeat=len(ambiguous)))

	best = None
	failures = []
	for modes in combinations:
		trial = list(relations)
		for k, mode in zip(ambiguous, modes):
			index, relation = relations[k]
			trial[k] = (index, Tangent(relation.arc, relation.other, mode))
		problem = Problem(sketch, trial, delta)
		try:
			x, report = problem.solve(precision, maxiter, max_increment, damping)
		except SolveError as err:
			if ambiguous:
				logger.debug('tangent modes %s failed: %s', modes, err)
			failures.append((problem, err))
			continue
		report.modes = {relations[k][0]: mode  for k, mode in zip(ambiguous, modes)}
		if best is None or report.displacement < best[2].displacement:
			best = (problem, x, report)

	if best is None:
		# report the failure of the configuration nearest to the initial state
		problem, err = min(failures, key=lambda failure: np.abs(failure[0].evaluate(failure[0].initial())).max(initial=0.))
		logger.info('sketch solve failed: %s', err)
		raise err

	problem, x, report = best
	problem.apply(x)
	logger.info('sketch solved in %d iterations: %d parameters, %d equations, %d degrees of freedom, residual %.3g',
		report.iterations, report.parameters, report.equations, report.freedom, report.residual)
	return report
