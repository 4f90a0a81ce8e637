"""
Model-layer errors
"""


class ModelError(Exception):
    """Base exception for the persistence models"""
    pass


class NoRecordError(ModelError):
    """No matching record found"""

    def __init__(self, message: str = "models: no matching record found"):
        super().__init__(message)


class InvalidCredentialsError(ModelError):
    """
    Email/password combination rejected

    The message is the same for every cause; ``reason`` tells the
    unknown-email and wrong-password branches apart internally.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__("models: invalid credentials")


class DuplicateEmailError(ModelError):
    """Signup used an email address that is already registered"""

    def __init__(self, message: str = "models: duplicate email"):
        super().__init__(message)
