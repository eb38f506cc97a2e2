"""
Error taxonomy for Design Critic.

Every failure inside the analysis pipeline is one of these. The HTTP layer maps
each class to a single flat message and status code.
"""


class DesignCriticError(Exception):
    """Base class for all Design Critic errors"""

    status_code = 500
    public_message = "Failed to analyze design. Please try again."


class InputValidationError(DesignCriticError):
    """Raised when a submission is rejected before the pipeline starts"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.public_message = message


class CaptureError(DesignCriticError):
    """Raised when a webpage screenshot could not be captured"""

    public_message = "Failed to capture screenshot"


class EvaluationError(DesignCriticError):
    """Raised when the evaluator call fails or returns nothing"""


class MalformedAnalysisError(DesignCriticError):
    """Raised when evaluator output does not match the verdict schema"""


class AnalysisTimeoutError(DesignCriticError):
    """Raised when the pipeline exceeds its end-to-end deadline"""

    public_message = "Analysis timed out"


class PersistenceError(DesignCriticError):
    """Raised when a result could not be written to the store"""

    public_message = "Failed to save analysis"
