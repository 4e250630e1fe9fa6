"""
Exception types raised by the MNF engine.

Every error carries the pipeline stage it was raised from so that a batch
driver can tell a bad configuration from a failed numerical kernel or a
missing statistics file.
"""


class MnfError(Exception):
    """Base class for all MNF errors."""

    def __init__(self, message, stage=None):
        super().__init__(message)
        self.stage = stage


class ConfigurationError(MnfError, ValueError):
    """Invalid dimensions, truncation rank or image buffer."""

    def __init__(self, message, stage="configuration"):
        super().__init__(message, stage=stage)


class NumericalFailure(MnfError, RuntimeError):
    """
    A numerical kernel reported failure.

    Parameters:
    -----------
    stage : str
        One of 'statistics estimation', 'eigen-decomposition',
        'LU decomposition' or 'inversion'.
    status : int
        Status code returned by the kernel (LAPACK ``info`` convention).
    detail : str, optional
        Extra text appended to the message.
    """

    def __init__(self, stage, status, detail=None):
        message = f"MNF {stage} failed (status {status})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, stage=stage)
        self.status = status


class MissingArtifactError(MnfError, OSError):
    """A persisted covariance or band-means file is missing or malformed."""

    def __init__(self, path, detail=None):
        message = f"MNF persistence load failed for {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, stage="persistence load")
        self.path = path
