# storefront/domain/errors.py
"""
Bledy domenowe. Serwisy je rzucaja, warstwa api tlumaczy na odpowiedz
{success: false, message, error} z odpowiednim kodem http.
"""


class DomainError(Exception):
    status_code = 400
    code = "DomainError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    status_code = 404
    code = "NotFound"


class DuplicateName(DomainError):
    status_code = 409
    code = "DuplicateName"


class ParentInactive(DomainError):
    code = "ParentInactive"


class HierarchyMismatch(DomainError):
    code = "HierarchyMismatch"


class HasDependents(DomainError):
    status_code = 409
    code = "HasDependents"


class ProductInactive(DomainError):
    code = "ProductInactive"


class InsufficientStock(DomainError):
    status_code = 409
    code = "InsufficientStock"


class EmptyCart(DomainError):
    code = "EmptyCart"


class InvalidState(DomainError):
    status_code = 409
    code = "InvalidState"


class NotCancellable(DomainError):
    status_code = 409
    code = "NotCancellable"


class DeleteNotAllowed(DomainError):
    status_code = 409
    code = "DeleteNotAllowed"


class ValidationError(DomainError):
    code = "ValidationError"


class Forbidden(DomainError):
    status_code = 403
    code = "Forbidden"
