# mergemate/errors.py


class MergeEngineError(Exception):
    """Base class for every error raised by the merge engine."""


class TemplateInputError(MergeEngineError, ValueError):
    """
    A required argument (template, record, record list) is missing or has
    the wrong shape. Raised immediately, never retried.
    """


class TemplateProcessingError(MergeEngineError, RuntimeError):
    """
    Something unexpected broke while rendering a template.

    The original exception is attached as ``__cause__``.
    """

    def __init__(self, message: str = "Template processing failed"):
        super().__init__(message)
