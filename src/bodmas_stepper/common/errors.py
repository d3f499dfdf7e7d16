"""Errors raised while tokenizing and evaluating expressions."""


class EvaluationError(ValueError):
    """
    Raised when an expression cannot be evaluated.

    The message is meant to be shown to the end user as-is; ``code`` lets
    callers tell failure kinds apart without parsing the message.
    """

    def __init__(self, message: str, code: str = "invalid") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class LexError(EvaluationError):
    """Raised by the tokenizer for unsupported characters or malformed numbers."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="lex")
