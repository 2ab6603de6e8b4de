# app/errors.py


class AppError(Exception):
    """Base for errors rendered as {"detail": ...} with a fixed status code."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(AppError):
    # bad weekday, time not on the grid, missing field
    status_code = 422


class ConflictError(AppError):
    status_code = 409


class SlotUnavailableError(AppError):
    status_code = 409


class InvalidTransitionError(AppError):
    status_code = 409


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class UpstreamUnavailableError(AppError):
    status_code = 503
