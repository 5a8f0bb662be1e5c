import numbers
from typing import Any, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from typing_extensions import Annotated

from tsprim.impl.error_handling import InvalidArgument, fmt_errors

__all__ = [
    "CusumArgs",
    "EmaArgs",
    "EntropyArgs",
    "EwtArgs",
    "PowArgs",
    "WindowArgs",
    "check_args",
    "check_length",
]

M = TypeVar("M", bound=BaseModel)

Probability = Annotated[float, Field(ge=0.0, le=1.0)]


def _index_like(v: Any) -> Any:
    # numpy integer scalars are Integral but not int
    if isinstance(v, numbers.Integral) and not isinstance(v, bool):
        return int(v)
    return v


def _real_or_none(v: Any) -> Any:
    if v is None:
        return v
    if isinstance(v, bool) or not isinstance(v, numbers.Real):
        raise ValueError(f"must be a real number, got {type(v).__name__}")
    return float(v)


class WindowArgs(BaseModel):
    window: int = Field(gt=1, alias="m")
    halflife: int = Field(gt=1, alias="h")

    @field_validator("window", "halflife", mode="before")
    @classmethod
    def _coerce_ints(cls, v):
        return _index_like(v)


class EmaArgs(WindowArgs):
    init_sig: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    @field_validator("init_sig", mode="before")
    @classmethod
    def _check_init_sig(cls, v):
        return _real_or_none(v)


class EntropyArgs(BaseModel):
    n: int = Field(gt=2)
    tol: Optional[float] = None
    probs: Tuple[Probability, Probability]
    lam: float = Field(gt=0.0, le=1.0)

    @field_validator("n", mode="before")
    @classmethod
    def _coerce_n(cls, v):
        return _index_like(v)

    @field_validator("probs", mode="before")
    @classmethod
    def _coerce_probs(cls, v):
        # accept numpy arrays as well as lists and tuples
        return tuple(v) if hasattr(v, "__len__") and not isinstance(v, str) else v

    @model_validator(mode="after")
    def _default_tol(self):
        if self.tol is None:
            self.tol = 1.0 / (100 * self.n)
        if not 0.0 < self.tol < 0.01:
            raise ValueError(f"tol must be in the interval (0, 0.01), got {self.tol}")
        return self


class EwtArgs(BaseModel):
    b: int = Field(gt=0)
    lm: float = Field(gt=0.0, le=1.0)

    @field_validator("b", mode="before")
    @classmethod
    def _coerce_b(cls, v):
        return _index_like(v)


class CusumArgs(BaseModel):
    w: int = Field(gt=1)
    h: float = Field(gt=0.0)

    @field_validator("w", mode="before")
    @classmethod
    def _coerce_w(cls, v):
        return _index_like(v)


class PowArgs(BaseModel):
    n: int = Field(ge=0)

    @field_validator("n", mode="before")
    @classmethod
    def _coerce_n(cls, v):
        return _index_like(v)


def check_args(model: Type[M], func_name: str, **kwargs) -> M:
    """Validates scalar arguments of `func_name` against `model`, raising InvalidArgument on failure"""
    try:
        return model.model_validate(kwargs)
    except ValidationError as e:
        raise InvalidArgument(fmt_errors(e, func_name)) from None


def check_length(x, min_length: int, func_name: str, name: str = "x") -> int:
    """Requires len(x) > min_length"""
    n = len(x)
    if n <= min_length:
        raise InvalidArgument(
            f"The length of the data series `{name}` passed to {func_name} must be > {min_length}, got {n}"
        )
    return n
