"""
서비스 계층 예외 분류.

서비스 함수는 HTTP 를 모른다. 뷰 계층에서는 DRF 예외 핸들러
(``coinchat_backend.exceptions.api_exception_handler``) 가 이 예외들을
``{success, message, data, code}`` 봉투로 변환한다.
"""


class ServiceError(Exception):
    status_code = 500
    default_message = "Something went wrong"
    default_code = None

    def __init__(self, message=None, code=None, data=None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.data = data
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    status_code = 400
    default_message = "Invalid request"


class NotAuthenticated(ServiceError):
    status_code = 401
    default_message = "Authentication required"


class PermissionDenied(ServiceError):
    status_code = 403
    default_message = "You are not allowed to do this"


class NotFound(ServiceError):
    status_code = 404
    default_message = "Not found"


class BusinessRuleError(ServiceError):
    status_code = 400
    default_message = "Request violates a business rule"


class Conflict(ServiceError):
    status_code = 409
    default_message = "Conflicting request"


class InsufficientCoins(BusinessRuleError):
    default_code = "INSUFFICIENT_COINS"
    default_message = "You do not have enough coins."

    def __init__(self, required, current, message=None):
        self.required = int(required)
        self.current = int(current)
        super().__init__(
            message=message,
            data={"required": self.required, "current": self.current},
        )
