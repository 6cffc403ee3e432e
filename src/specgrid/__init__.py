"""
specgrid - submit local test projects to the specgrid remote execution service
"""

__version__ = "1.4.0"

from .errors import SubmitError
from .pipeline import SubmissionPipeline

__all__ = ["SubmissionPipeline", "SubmitError"]
