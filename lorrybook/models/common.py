from typing import Literal
import uuid

PaymentStatus = Literal["UNPAID", "PARTIALLY_PAID", "PAID"]


def gen_id() -> str:
    return str(uuid.uuid4())


def payment_status(total_paise: int, paid_paise: int) -> PaymentStatus:
    if total_paise > 0 and paid_paise >= total_paise:
        return "PAID"
    if paid_paise > 0:
        return "PARTIALLY_PAID"
    return "UNPAID"
