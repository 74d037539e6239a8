"""Domain errors raised by the discount services.

Routers never catch these; the handlers registered in ``discount_api.main``
turn them into JSON error responses.
"""
from typing import List


class DiscountError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(DiscountError):
    status_code = 404


class ValidationFailed(DiscountError):
    status_code = 400


class Ineligible(DiscountError):
    status_code = 422

    def __init__(self, reasons: List[str]):
        super().__init__(", ".join(reasons))
        self.reasons = list(reasons)


class DuplicateBottleReturn(DiscountError):
    status_code = 409

    def __init__(self, order_id: str):
        super().__init__(
            "Only one bottle return discount can be applied per order. "
            "Please remove the existing bottle return discount first."
        )
        self.order_id = order_id
