"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``taskboard.main`` turns each one into a JSON body of the
form ``{"error": message}`` with the status code carried by the class.
"""


class TaskboardError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskboardError):
    status_code = 400


class AlreadyExistsError(ValidationError):
    pass


class AuthenticationError(TaskboardError):
    status_code = 401


class InvalidCredentialsError(AuthenticationError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AuthorizationError(TaskboardError):
    status_code = 403


class NotFoundError(TaskboardError):
    status_code = 404


class StorageError(TaskboardError):
    """Backing medium unreadable. Caught inside the store, never surfaced."""
