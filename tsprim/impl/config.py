import os

from pydantic import BaseModel, ConfigDict, Field

_TRUE_VALUES = ("1", "on", "true")


class Config(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    # Default for the `chk_inp=None` argument of the derivative and signal functions
    check_inputs: bool = False
    # Longest repr of an offending input echoed back in an InvalidArgument message
    input_value_truncate_length: int = Field(default=300, gt=3)


def _config_from_environ() -> Config:
    kwargs = {}
    if "TSPRIM_CHECK_INPUTS" in os.environ:
        kwargs["check_inputs"] = os.environ["TSPRIM_CHECK_INPUTS"].lower() in _TRUE_VALUES
    if "TSPRIM_INPUT_VALUE_TRUNCATE_LENGTH" in os.environ:
        kwargs["input_value_truncate_length"] = int(os.environ["TSPRIM_INPUT_VALUE_TRUNCATE_LENGTH"])
    return Config(**kwargs)


_CONFIG = _config_from_environ()


def get_config() -> Config:
    return _CONFIG


def set_config(**kwargs) -> Config:
    """
    :param kwargs: Config fields to override, i.e. set_config(check_inputs=True)
    :return: The previous Config, which can be restored with set_config(**old.model_dump())
    """
    global _CONFIG
    old_value = _CONFIG
    _CONFIG = Config(**{**old_value.model_dump(), **kwargs})
    return old_value
