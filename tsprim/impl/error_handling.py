from pydantic import ValidationError
from pydantic_core import ErrorDetails

from tsprim.impl.config import get_config


class InvalidArgument(ValueError):
    """Raised when an argument violates the input contract of a tsprim function"""


# ValidationError formatting helpers


def fmt_loc(loc: tuple[int | str, ...]) -> str:
    """Renders an argument location the way it is written at the call site, i.e. probs[0]"""
    out = []
    for loc_item in loc:
        match loc_item:
            case int():
                out.append(f"[{loc_item}]")
            case _:
                out.append(f".{loc_item}" if out else str(loc_item))
    return "".join(out)


def truncate_input_value(input_value: str) -> str:
    limit = get_config().input_value_truncate_length
    if (input_len := len(input_value)) > limit:
        mid_point = (limit + 1) // 2
        left_end = max(mid_point - 3, 0)
        right_start = min(input_len - mid_point + 5, input_len)
        return f"{input_value[:left_end]}...{input_value[right_start:]}"
    return input_value


def fmt_line_error(error_details: ErrorDetails) -> str:
    input_value = error_details["input"]
    input_type = type(input_value)
    input_type_str = (
        f"{input_type.__module__}." if input_type.__module__ != "builtins" else ""
    ) + input_type.__qualname__
    detail = (
        f"  {error_details['msg']} [type={error_details['type']}, "
        f"input_value={truncate_input_value(repr(input_value))}, input_type={input_type_str}]"
    )
    # Errors raised across several arguments (i.e. tol against n) have no location
    loc = fmt_loc(error_details["loc"])
    return f"{loc}\n{detail}" if loc else detail


def fmt_errors(e: ValidationError, func_name: str) -> str:
    """Formats the errors of a failed argument validation, naming the arguments as `func_name` takes them"""
    errors = e.errors(include_url=False)
    count = len(errors)
    plural = "" if count == 1 else "s"
    line_errors = "\n".join(fmt_line_error(error) for error in errors)
    return f"{count} invalid argument{plural} to {func_name}\n{line_errors}"
