"""
Error families for the assistant.

RecoverableError: an external call failed while answering one question. The
chat loop reports it and moves on to the next question.
FatalError: the process cannot serve questions at all (e.g. clients could not
be built). CLIs exit non-zero.

Metadata sanitization has no error type: it cannot fail.
"""


class AssistantError(Exception):
    """Base class for assistant errors."""


class RecoverableError(AssistantError):
    """Failure scoped to a single question."""


class RetrievalError(RecoverableError):
    """Vector store search failed."""


class GenerationError(RecoverableError):
    """Generation service call failed."""


class FatalError(AssistantError):
    """Failure that terminates the process."""


class StartupError(FatalError):
    """A long-lived client could not be constructed."""
