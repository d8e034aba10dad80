"""
Error taxonomy shared by services and routes.

Services raise these; the handlers registered in ``main.py`` turn them into
``{"error": message}`` JSON bodies with the matching status code.
"""


class KnowledgeBaseError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(KnowledgeBaseError):
    status_code = 401


class Forbidden(KnowledgeBaseError):
    status_code = 403


class NotFound(KnowledgeBaseError):
    status_code = 404


class InvalidInput(KnowledgeBaseError):
    status_code = 400


class InvalidURL(InvalidInput):
    pass


class UpstreamFailure(KnowledgeBaseError):
    """Database or AI provider error."""

    status_code = 500


class EmptyGeneration(UpstreamFailure):
    """The model answered with an empty string."""
