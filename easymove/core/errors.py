from typing import Dict, List

from pydantic import ValidationError


class QuoteValidationError(ValueError):
    """Trip request rejected before pricing.

    ``errors`` is a list of ``{"field": ..., "message": ...}`` dicts suitable
    for returning to the caller as-is.
    """

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        super().__init__("; ".join(f"{e['field']}: {e['message']}" for e in errors))

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "QuoteValidationError":
        errors = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ())) or "request"
            errors.append({"field": field, "message": err.get("msg", "Invalid value")})
        return cls(errors)

    @classmethod
    def single(cls, field: str, message: str) -> "QuoteValidationError":
        return cls([{"field": field, "message": message}])
