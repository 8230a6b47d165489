"""业务异常：由 main.py 的异常处理器统一渲染为 {"detail", "code"}"""


class LedgerError(Exception):
    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ValidationError(LedgerError):
    """缺字段、金额非正、超额还款、同账户转账等"""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(LedgerError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(LedgerError):
    """删除被引用约束阻止"""

    status_code = 400
    code = "CONFLICT"
