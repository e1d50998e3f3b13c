"""
Weight optimisation for the Synthetic Control Method.
Based on Abadie, Diamond & Hainmueller (2010, 2015) and Abadie (2021).

The inner problem finds donor weights W on the simplex that best reproduce the
treated unit's predictors under a diagonal predictor weighting V. The outer
problem searches V to minimise the pre-intervention outcome MSE.

When the donor matrix is rank deficient relative to the predictors (K > J, or
collinear predictors) and some V entries are zero, several W can attain the
same inner loss. The solver returns whichever one cvxpy reports; that
non-uniqueness is not resolved here.
"""

import time
import warnings
from typing import NamedTuple

import cvxpy as cp
import numpy as np
import pandas as pd
from scipy.optimize import minimize
from tqdm import tqdm

from .config import (
    DEFAULT_SOLVER,
    MAX_ITER,
    N_STARTS,
    OUTER_METHOD,
    RANDOM_SEED,
    RIDGE_PENALTY,
    SIMPLEX_TOLERANCE,
    SOLVER_OPTIONS,
    TOLERANCE,
)
from .dataprep import PreparedData
from .exceptions import (
    ConvergenceError,
    SingularOptimizationError,
    SingularOptimizationWarning,
)
from .logger import logger

# Objective value assigned to a V for which the inner problem has no solution
FAILED_EVALUATION = 1e10


class SolverResult(NamedTuple):
    """Container for fitted weights."""

    v: pd.Series  # Predictor importance weights (K,), sums to 1
    w: pd.Series  # Donor weights (J,), on the simplex
    loss: float  # Pre-treatment MSPE of the outcome
    converged: bool
    n_evaluations: int
    regularized: bool  # Inner problem needed a ridge term
    message: str


def project_to_simplex(w: np.ndarray, tol: float = SIMPLEX_TOLERANCE) -> np.ndarray:
    """
    Clip solver noise and renormalise weights onto the probability simplex.

    Args:
        w: Raw weights from the QP solver
        tol: Largest negative entry tolerated as numerical noise

    Returns:
        Nonnegative weights summing to one

    Raises:
        SingularOptimizationError: If the weights are far from feasible
    """
    w = np.asarray(w, dtype=float).ravel()

    if np.any(~np.isfinite(w)):
        raise SingularOptimizationError("Solver returned non-finite weights")

    if w.min() < -np.sqrt(tol):
        raise SingularOptimizationError(
            f"Solver returned infeasible weights (min {w.min():.3g})"
        )

    w = np.clip(w, 0.0, None)
    w[w < tol * 1e-2] = 0.0

    total = w.sum()
    if total <= 0:
        raise SingularOptimizationError("Solver returned all-zero weights")

    return w / total


def normalize_v(v: np.ndarray) -> np.ndarray:
    """Map an unconstrained vector to nonnegative predictor weights summing to one."""
    v = np.abs(np.asarray(v, dtype=float).ravel())
    total = v.sum()
    if not np.isfinite(total) or total == 0:
        return np.full(len(v), 1.0 / len(v))
    return v / total


class InnerProblem:
    """
    Simplex-constrained weighted least squares for a fixed donor pool.

    Minimizes: (X1 - X0 @ W)' diag(v) (X1 - X0 @ W)
    Subject to: W >= 0, sum(W) = 1

    The cvxpy problem is built once with v as a parameter, so repeated solves
    during the outer search reuse the same canonicalisation.
    """

    def __init__(
        self,
        X0: np.ndarray,
        X1: np.ndarray,
        solver: str = DEFAULT_SOLVER,
        ridge: float = RIDGE_PENALTY,
    ):
        X0 = np.asarray(X0, dtype=float)
        X1 = np.asarray(X1, dtype=float).ravel()

        if X0.ndim != 2:
            raise ValueError(f"X0 must be 2-dimensional, got shape {X0.shape}")
        if X0.shape[0] != X1.shape[0]:
            raise ValueError(
                f"X0 has {X0.shape[0]} predictor rows but X1 has {X1.shape[0]}"
            )

        K, J = X0.shape
        self.n_predictors = K
        self.n_donors = J
        self.solver = solver

        self._W = cp.Variable(J)
        self._scale = cp.Parameter(K, nonneg=True)

        # Weighted distance
        diff = cp.multiply(self._scale, X1 - X0 @ self._W)
        fit = cp.sum_squares(diff)

        constraints = [
            self._W >= 0,
            cp.sum(self._W) == 1,
        ]

        self._problem = cp.Problem(cp.Minimize(fit), constraints)
        self._ridge_problem = cp.Problem(
            cp.Minimize(fit + ridge * cp.sum_squares(self._W)), constraints
        )

    def _attempt(self, problem: cp.Problem) -> np.ndarray | None:
        try:
            problem.solve(solver=self.solver, **SOLVER_OPTIONS.get(self.solver, {}))
        except cp.SolverError as e:
            logger.debug(f"Inner QP solver error: {e}")
            return None

        if problem.status not in (cp.OPTIMAL, cp.OPTIMAL_INACCURATE):
            logger.debug(f"Inner QP finished with status {problem.status}")
            return None

        return self._W.value

    def solve(self, v: np.ndarray) -> tuple[np.ndarray, bool]:
        """
        Solve for donor weights under predictor weights v.

        Returns:
            Tuple of (weights on the simplex, whether a ridge term was needed)

        Raises:
            SingularOptimizationError: If the ridge-regularised problem fails too
        """
        v = np.asarray(v, dtype=float).ravel()
        if v.shape[0] != self.n_predictors:
            raise ValueError(
                f"Expected {self.n_predictors} predictor weights, got {v.shape[0]}"
            )
        if np.any(v < 0):
            raise ValueError("Predictor weights must be nonnegative")

        if self.n_donors == 1:
            return np.array([1.0]), False

        self._scale.value = np.sqrt(v)

        w = self._attempt(self._problem)
        if w is not None:
            try:
                return project_to_simplex(w), False
            except SingularOptimizationError as e:
                logger.debug(f"Discarding inner QP solution: {e}")

        warnings.warn(
            "Inner weight problem is ill-conditioned; retrying with a ridge penalty",
            SingularOptimizationWarning,
            stacklevel=2,
        )

        w = self._attempt(self._ridge_problem)
        if w is None:
            raise SingularOptimizationError(
                "Inner weight problem could not be solved, even with a ridge penalty"
            )

        return project_to_simplex(w), True


def solve_weights(
    X0: np.ndarray,
    X1: np.ndarray,
    V: np.ndarray,
    solver: str = DEFAULT_SOLVER,
) -> np.ndarray:
    """
    Solve for optimal synthetic control weights given predictor weights V.

    Minimizes: (X1 - X0 @ W)' V (X1 - X0 @ W)
    Subject to: W >= 0, sum(W) = 1

    Args:
        X0: Predictor matrix for control units (K x J)
        X1: Predictor vector for treated unit (K x 1)
        V: Predictor weights, as a vector (K,) or diagonal matrix (K x K)
        solver: cvxpy solver name

    Returns:
        Optimal weights W (J x 1)
    """
    V = np.asarray(V, dtype=float)
    v = np.diag(V) if V.ndim == 2 else V

    W, _ = InnerProblem(X0, X1, solver=solver).solve(v)
    return W


def compute_mspe(
    Y0: np.ndarray,
    Y1: np.ndarray,
    W: np.ndarray,
) -> float:
    """
    Compute Mean Squared Prediction Error.

    Args:
        Y0: Outcome matrix for control units (T x J)
        Y1: Outcome vector for treated unit (T x 1)
        W: Synthetic control weights (J x 1)

    Returns:
        MSPE value
    """
    synthetic = np.asarray(Y0, dtype=float) @ np.asarray(W, dtype=float)
    errors = np.asarray(Y1, dtype=float) - synthetic
    return float(np.mean(errors**2))


def compute_rmspe(
    Y0: np.ndarray,
    Y1: np.ndarray,
    W: np.ndarray,
) -> float:
    """
    Compute Root Mean Square Prediction Error.

    Args:
        Y0: Outcome matrix for control units (T x J)
        Y1: Outcome vector for treated unit (T x 1)
        W: Synthetic control weights (J x 1)

    Returns:
        RMSPE value
    """
    return float(np.sqrt(compute_mspe(Y0, Y1, W)))


def outer_objective(
    v_flat: np.ndarray,
    X0: np.ndarray,
    X1: np.ndarray,
    Z0: np.ndarray,
    Z1: np.ndarray,
    inner: InnerProblem | None = None,
) -> float:
    """
    Outer optimization objective: minimize pre-treatment MSPE.

    Args:
        v_flat: Unnormalised predictor weights
        X0, X1: Predictor matrices
        Z0, Z1: Pre-treatment outcome matrices
        inner: Prebuilt inner problem for X0, X1 (built here when omitted)

    Returns:
        Pre-treatment MSPE
    """
    if inner is None:
        inner = InnerProblem(X0, X1)
    loss, _, _ = _evaluate(inner, normalize_v(v_flat), Z0, Z1)
    return loss


def _evaluate(inner: InnerProblem, v: np.ndarray, Z0, Z1):
    """Solve for W at normalised V; returns (mspe, w, regularized)."""
    w, regularized = inner.solve(v)
    return compute_mspe(Z0, Z1, w), w, regularized


def standardize_predictors(
    X0: np.ndarray,
    X1: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Divide each predictor by its standard deviation across all units.

    Predictors with zero spread are left unscaled.
    """
    X_all = np.hstack([X0, X1.reshape(-1, 1)])
    X_std = np.std(X_all, axis=1)
    X_std[X_std == 0] = 1

    return X0 / X_std.reshape(-1, 1), X1 / X_std


def regression_v(
    X0: np.ndarray,
    X1: np.ndarray,
    Z0: np.ndarray,
    Z1: np.ndarray,
) -> np.ndarray:
    """
    Starting predictor weights from a cross-unit regression.

    Regresses every pre-treatment outcome on the (standardised) predictors
    across treated and donor units and weights each predictor by the sum of
    its squared coefficients.
    """
    X_all = np.hstack([X1.reshape(-1, 1), X0]).T  # units x K
    Z_all = np.hstack([np.asarray(Z1).reshape(-1, 1), Z0]).T  # units x T0
    design = np.hstack([np.ones((X_all.shape[0], 1)), X_all])

    beta, *_ = np.linalg.lstsq(design, Z_all, rcond=None)
    return normalize_v(np.sum(beta[1:] ** 2, axis=1))


class _BudgetExhausted(Exception):
    pass


class _VSearch:
    """Outer objective that remembers the best evaluation seen."""

    def __init__(self, inner: InnerProblem, Z0, Z1, deadline: float | None):
        self.inner = inner
        self.Z0 = Z0
        self.Z1 = Z1
        self.deadline = deadline
        self.n_evaluations = 0
        self.start = 0
        self.best_loss = np.inf
        self.best = None  # (v, w, regularized, start)

    def __call__(self, x: np.ndarray) -> float:
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise _BudgetExhausted

        v = normalize_v(x)
        try:
            loss, w, regularized = _evaluate(self.inner, v, self.Z0, self.Z1)
        except SingularOptimizationError as e:
            logger.debug(f"No inner solution for V={v}: {e}")
            return FAILED_EVALUATION

        self.n_evaluations += 1

        if loss < self.best_loss:
            self.best_loss = loss
            self.best = (v, w, regularized, self.start)

        return loss


def _starting_points(
    X0: np.ndarray,
    X1: np.ndarray,
    Z0: np.ndarray,
    Z1: np.ndarray,
    v0: np.ndarray | None,
    initial: str,
    n_starts: int,
    seed: int,
) -> list[np.ndarray]:
    K = X0.shape[0]

    if v0 is not None:
        first = normalize_v(v0)
    elif initial == "ols":
        first = regression_v(X0, X1, Z0, Z1)
    elif initial == "equal":
        first = np.full(K, 1.0 / K)
    else:
        raise ValueError(f"Unknown initial V strategy '{initial}'; use 'equal' or 'ols'")

    starts = [first]
    rng = np.random.default_rng(seed)
    for _ in range(max(n_starts, 1) - 1):
        starts.append(rng.dirichlet(np.ones(K)))

    return starts


def _check_custom_v(custom_v, K: int) -> np.ndarray:
    v = np.asarray(custom_v, dtype=float).ravel()
    if v.shape[0] != K:
        raise ValueError(f"custom_v has {v.shape[0]} entries, expected {K}")
    if np.any(v < 0) or not np.any(v > 0):
        raise ValueError("custom_v must be nonnegative with at least one positive entry")
    return v / v.sum()


def solve(
    prepared: PreparedData,
    custom_v: np.ndarray | None = None,
    v0: np.ndarray | None = None,
    initial: str = "equal",
    method: str = OUTER_METHOD,
    max_iter: int = MAX_ITER,
    tol: float = TOLERANCE,
    max_time: float | None = None,
    n_starts: int = N_STARTS,
    seed: int = RANDOM_SEED,
    standardize: bool = True,
    solver: str = DEFAULT_SOLVER,
    strict: bool = False,
    progress: bool = False,
) -> SolverResult:
    """
    Fit predictor weights V and donor weights W for a prepared dataset.

    Args:
        prepared: Output of dataprep.prepare
        custom_v: Fixed predictor weights; skips the outer search
        v0: Starting predictor weights for the outer search
        initial: Starting strategy when v0 is None: 'equal' or 'ols'
        method: scipy.optimize.minimize method for the outer search
        max_iter: Iteration budget per start
        tol: Convergence tolerance passed to scipy
        max_time: Wall-clock budget in seconds for the outer search
        n_starts: Number of starting points (extra ones drawn from seed)
        seed: Seed for the extra starting points
        standardize: Scale predictors by their cross-unit std before fitting
        solver: cvxpy solver for the inner problem
        strict: Raise ConvergenceError instead of returning an unconverged fit
        progress: Show a progress bar over starting points

    Returns:
        SolverResult with V, W and the pre-treatment MSPE

    Raises:
        ConvergenceError: If no evaluation completed within the time budget,
            or the search did not converge and strict is True
        SingularOptimizationError: If the inner problem failed for every V
    """
    predictors = prepared.X0.index
    donors = list(prepared.donors)

    X0 = prepared.X0.to_numpy(dtype=float)
    X1 = prepared.X1.to_numpy(dtype=float)
    Z0 = prepared.Z0.to_numpy(dtype=float)
    Z1 = prepared.Z1.to_numpy(dtype=float)

    if Z0.shape != (Z1.shape[0], X0.shape[1]):
        raise ValueError(
            f"Outcome matrix shape {Z0.shape} does not match "
            f"{Z1.shape[0]} periods x {X0.shape[1]} donors"
        )

    if standardize:
        X0, X1 = standardize_predictors(X0, X1)

    K, J = X0.shape
    inner = InnerProblem(X0, X1, solver=solver)

    def finish(v, w, converged, n_evaluations, regularized, message) -> SolverResult:
        return SolverResult(
            v=pd.Series(v, index=predictors, name="v_weight"),
            w=pd.Series(w, index=donors, name="weight"),
            loss=compute_mspe(Z0, Z1, w),
            converged=converged,
            n_evaluations=n_evaluations,
            regularized=regularized,
            message=message,
        )

    # Fixed V: single donor, single predictor, or caller-supplied weights
    if custom_v is not None or K == 1 or J == 1:
        if custom_v is not None:
            v = _check_custom_v(custom_v, K)
            reason = "fixed predictor weights"
        elif K == 1:
            v = np.array([1.0])
            reason = "single predictor"
        else:
            v = np.full(K, 1.0 / K) if v0 is None else normalize_v(v0)
            reason = "single donor"

        w, regularized = inner.solve(v)
        result = finish(v, w, True, 1, regularized, reason)
        logger.info(f"Fitted weights with {reason}: pre-treatment MSPE {result.loss:.4g}")
        return result

    starts = _starting_points(X0, X1, Z0, Z1, v0, initial, n_starts, seed)
    deadline = time.monotonic() + max_time if max_time is not None else None
    search = _VSearch(inner, Z0, Z1, deadline)

    outcomes = []
    budget_hit = False

    for i, x0 in enumerate(tqdm(starts, desc="V search", disable=not progress)):
        search.start = i
        try:
            res = minimize(
                search,
                x0,
                method=method,
                tol=tol,
                options={"maxiter": max_iter},
            )
        except _BudgetExhausted:
            logger.warning(f"Time budget of {max_time}s exhausted during start {i}")
            outcomes.append((False, "time budget exhausted"))
            budget_hit = True
            break

        outcomes.append((bool(res.success), str(res.message)))
        logger.info(f"Start {i}: pre-treatment MSPE {res.fun:.4g} ({res.message})")

    if search.best is None:
        if search.n_evaluations == 0 and budget_hit:
            raise ConvergenceError(
                "No evaluation of the predictor weights completed within the time budget"
            )
        raise SingularOptimizationError(
            "Inner weight problem failed for every candidate predictor weighting"
        )

    v, w, regularized, best_start = search.best
    converged, message = outcomes[best_start] if best_start < len(outcomes) else outcomes[-1]
    if budget_hit:
        converged = False

    result = finish(v, w, converged, search.n_evaluations, regularized, message)

    if not converged:
        msg = (
            f"Predictor weight search did not converge after "
            f"{search.n_evaluations} evaluations ({message}); "
            f"best pre-treatment MSPE {result.loss:.4g}"
        )
        if strict:
            raise ConvergenceError(msg, result=result)
        logger.warning(msg)

    return result
