import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

REQUIRED_APPLICATION_FIELDS = ("loanTitle", "loanAmount", "category", "firstName", "lastName", "userEmail")


# ISO-8601 UTC with millisecond precision and a trailing Z
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Fields that are absent, null, empty strings or zero count as missing
def missing_fields(payload: Dict[str, Any], fields: Iterable[str]) -> List[str]:
    return [field for field in fields if not payload.get(field)]


def parse_loan_amount(value: Any):
    if isinstance(value, bool):
        raise ValueError("loanAmount must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError("loanAmount must be a number") from e
    if not math.isfinite(amount):
        raise ValueError("loanAmount must be a number")
    return int(amount) if amount.is_integer() else amount
