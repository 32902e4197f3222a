"""
Failure taxonomy for the tutor.

Every failure either degrades to a default (a neutral affect sample) or halts
forward progress at the start() boundary. None of them should crash the loop.
"""


class TutorError(Exception):
    """Base class for all tutor errors."""


class SetupFailure(TutorError):
    """Model or camera acquisition failed; the lesson does not start.

    The message is human readable and shown as the status line.
    """


class SampleFailure(TutorError):
    """A single affect sample could not be produced (treated as neutral)."""


class UserPrecondition(TutorError):
    """The learner asked for something the current state does not allow."""


class UnknownSubject(TutorError, KeyError):
    """The subject id is not in the content store."""

    def __init__(self, subject: str):
        super().__init__(subject)
        self.subject = subject

    def __str__(self) -> str:
        return f"Unknown subject: {self.subject!r}"
