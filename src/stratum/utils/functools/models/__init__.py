from .result import (
    Err,
    Ok,
    Result,
    UnwrapError,
    is_err,
    is_ok,
)

__all__ = [
    "Err",
    "Ok",
    "Result",
    "UnwrapError",
    "is_err",
    "is_ok",
]
