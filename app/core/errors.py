from __future__ import annotations


class EngineError(RuntimeError):
    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class AssessmentNotFoundError(EngineError):
    status_code = 404


class InvalidStatusError(EngineError):
    status_code = 400


class UnknownPolicyError(EngineError):
    status_code = 400


class CatalogLoadError(EngineError):
    status_code = 503
