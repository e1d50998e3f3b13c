"""Exception classes raised while preparing and fitting a synthetic control."""


class SynthError(Exception):
    """Base class for all errors raised by peace_synth."""


class PanelDataError(SynthError):
    """The panel dataset is malformed (columns, duplicates, dtypes)."""


class MissingDataError(PanelDataError):
    """A required (unit, period) observation is absent from the panel."""

    def __init__(self, unit, periods, variable: str | None = None):
        self.unit = unit
        self.periods = list(periods)
        self.variable = variable

        shown = ", ".join(str(p) for p in self.periods[:10])
        if len(self.periods) > 10:
            shown += f", ... ({len(self.periods)} periods)"
        what = f" for '{variable}'" if variable else ""
        super().__init__(f"Unit '{unit}' is missing observations{what} in periods: {shown}")


class InvalidSpecError(SynthError):
    """The analysis specification is inconsistent or degenerate."""


class SingularOptimizationError(SynthError):
    """The inner weight problem could not be solved, even with regularisation."""


class SingularOptimizationWarning(UserWarning):
    """The inner weight problem needed a ridge term to be solved."""


class ConvergenceError(SynthError):
    """The predictor-weight search ran out of budget without converging."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        # Best iterate found before giving up, if any
        self.result = result
