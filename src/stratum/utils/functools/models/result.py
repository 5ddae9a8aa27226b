from __future__ import annotations

from collections.abc import Callable
from typing import (
    Any,
    Generic,
    Literal,
    NoReturn,
    TypeIs,
    TypeVar,
)

################################################################
# Trimmed down from https://github.com/rustedpy/result
# The upstream repo is not maintained anymore, so the subset we use lives here.
################################################################

T = TypeVar("T", covariant=True)  # Success type  # noqa: PLC0105
E = TypeVar("E", covariant=True)  # Error type  # noqa: PLC0105
U = TypeVar("U")
F = TypeVar("F")


class Ok(Generic[T]):
    """
    A value that indicates success and which stores arbitrary data for the return value.
    """

    __match_args__ = ("ok_value",)
    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        self._value = value

    def __repr__(self) -> str:
        return f"Ok({self._value!r})"

    def __eq__(self, other: Any) -> bool:  # noqa: ANN401
        return isinstance(other, Ok) and self._value == other._value

    def __ne__(self, other: Any) -> bool:  # noqa: ANN401
        return not (self == other)

    def __hash__(self) -> int:
        return hash((True, self._value))

    def is_ok(self) -> Literal[True]:
        return True

    def is_err(self) -> Literal[False]:
        return False

    @property
    def ok_value(self) -> T:
        """
        Returns the contained `Ok` value as a property.

        Examples:
        ```python
        x = Ok(2)
        assert x.ok_value == 2
        ```
        """
        return self._value

    def unwrap(self) -> T:
        return self._value

    def unwrap_err(self) -> NoReturn:
        raise UnwrapError(self, "Called `Result.unwrap_err()` on an `Ok` value")

    def unwrap_or(self, _: object) -> T:
        return self._value

    def map(self, op: Callable[[T], U]) -> Ok[U]:
        """
        Maps a `Result[T, E]` to `Result[U, E]` by applying a function to the contained `Ok` value.

        Examples:
        ```python
        x = Ok(2)
        assert x.map(lambda v: v * 2) == Ok(4)
        ```
        """
        return Ok(op(self._value))

    def map_err(self, _: object) -> Ok[T]:
        return self

    def and_then(self, op: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """
        Chains another result-returning operation after a success.

        Examples:
        ```python
        def validate_positive(x: int) -> Result[int, str]:
            return Ok(x) if x > 0 else Err("not positive")

        assert Ok(5).and_then(validate_positive) == Ok(5)
        assert Ok(-5).and_then(validate_positive) == Err("not positive")
        ```
        """
        return op(self._value)


class Err(Generic[E]):
    """
    A value that signifies failure and which stores arbitrary data for the error.
    """

    __match_args__ = ("err_value",)
    __slots__ = ("_value",)

    def __init__(self, value: E) -> None:
        self._value = value

    def __repr__(self) -> str:
        return f"Err({self._value!r})"

    def __eq__(self, other: Any) -> bool:  # noqa: ANN401
        return isinstance(other, Err) and self._value == other._value

    def __ne__(self, other: Any) -> bool:  # noqa: ANN401
        return not (self == other)

    def __hash__(self) -> int:
        return hash((False, self._value))

    def is_ok(self) -> Literal[False]:
        return False

    def is_err(self) -> Literal[True]:
        return True

    @property
    def err_value(self) -> E:
        """
        Returns the contained `Err` value as a property.

        Examples:
        ```python
        x = Err("error")
        assert x.err_value == "error"
        ```
        """
        return self._value

    def unwrap(self) -> NoReturn:
        """
        Raises an `UnwrapError` since this is an `Err` value.

        If the contained error is itself an exception it is chained as the cause.
        """
        exc = UnwrapError(self, f"Called `Result.unwrap()` on an `Err` value: {self._value!r}")
        if isinstance(self._value, BaseException):
            raise exc from self._value
        raise exc

    def unwrap_err(self) -> E:
        return self._value

    def unwrap_or(self, default: U) -> U:
        return default

    def map(self, _: object) -> Err[E]:
        return self

    def map_err(self, op: Callable[[E], F]) -> Err[F]:
        """
        Maps a `Result[T, E]` to `Result[T, F]` by applying a function to the contained `Err` value.

        Examples:
        ```python
        x = Err("error")
        assert x.map_err(lambda e: e.upper()) == Err("ERROR")
        ```
        """
        return Err(op(self._value))

    def and_then(self, _: object) -> Err[E]:
        return self


# A simple `Result` type inspired by Rust.
# Not all methods (https://doc.rust-lang.org/std/result/enum.Result.html)
# have been implemented, only the ones that make sense in the Python context.
type Result[T, E] = Ok[T] | Err[E]

class UnwrapError(Exception):
    """
    Exception raised from ``.unwrap`` and ``.unwrap_err`` calls.

    The original ``Result`` can be accessed via the ``.result`` attribute.
    """

    _result: Result[object, object]

    def __init__(self, result: Result[object, object], message: str) -> None:
        self._result = result
        super().__init__(message)

    @property
    def result(self) -> Result[Any, Any]:
        return self._result


def is_ok(result: Result[T, E]) -> TypeIs[Ok[T]]:
    """A type guard to check if a result is an Ok."""
    return result.is_ok()


def is_err(result: Result[T, E]) -> TypeIs[Err[E]]:
    """A type guard to check if a result is an Err."""
    return result.is_err()
