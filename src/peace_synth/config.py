"""
Configuration parameters for the post-conflict peace synthetic control study.
Scenario constants drive the demo pipeline; solver constants are the defaults
used by the weight optimisation.
"""

# Treatment configuration
TREATMENT_YEAR = 1994
PRE_TREATMENT_START = 1980
PRE_TREATMENT_END = 1993
POST_TREATMENT_END = 2010

# Panel layout used by the simulated dataset
UNIT_VAR = "country"
TIME_VAR = "year"
OUTCOME_VAR = "peace"

# Treated unit
TREATED_UNIT = "C00"

# Donor pool - every other simulated country
N_UNITS = 20
DONOR_POOL = [f"C{i:02d}" for i in range(1, N_UNITS)]

# Predictor variables for SCM (averages over pre-treatment period)
PREDICTOR_VARIABLES = [
    "duration",
    "intensity",
    "gdp_growth",
]

# Aggregation applied to ordinary predictors
PREDICTORS_OP = "mean"

# Special predictors: (variable, (first year, last year), operator)
SPECIAL_PREDICTORS = [
    (OUTCOME_VAR, (1980, 1984), "mean"),
    (OUTCOME_VAR, (1985, 1993), "mean"),
]

# Simulated intervention effect on the outcome (peace index points)
TREATMENT_EFFECT = 8.0

# Solver defaults
OUTER_METHOD = "Nelder-Mead"
MAX_ITER = 1000
TOLERANCE = 1e-6
N_STARTS = 1
DEFAULT_SOLVER = "CLARABEL"
RIDGE_PENALTY = 1e-8

# Extra settings passed to the inner QP solver, by solver name
SOLVER_OPTIONS = {
    "CLARABEL": {"tol_gap_abs": 1e-10, "tol_gap_rel": 1e-10, "tol_feas": 1e-10},
}

# Weights are projected back onto the simplex to this tolerance
SIMPLEX_TOLERANCE = 1e-6

# Donors below this weight are left out of the composition table
WEIGHT_THRESHOLD = 1e-4

# Random seed for reproducibility
RANDOM_SEED = 42
