class CodeAssistError(Exception):
    """Base class for errors raised by the assistant core."""


class ClassificationUnavailableError(CodeAssistError):
    """The AI intent classifier is not configured or its call failed."""


class GenerationError(CodeAssistError):
    """The completion provider failed while generating for an intent."""

    def __init__(self, intent: str, message: str):
        super().__init__(message)
        self.intent = intent
        self.message = message


class UnsupportedIntentError(GenerationError):
    def __init__(self, intent: str):
        super().__init__(intent, f"Unsupported intent type: {intent}")


class NotFoundError(CodeAssistError):
    """A file required to build the prompt could not be resolved."""


class ParseFailure(CodeAssistError):
    """One recovery stage could not produce a result. Never leaves the parser."""

    def __init__(self, stage: str, reason: str):
        super().__init__(f"{stage}: {reason}")
        self.stage = stage
        self.reason = reason
