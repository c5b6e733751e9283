from typing import Any

from pydantic import BaseModel, ConfigDict


class SerdeBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RawPayload(SerdeBase):
    """Request body whose fields are whitelisted and checked by the core.

    Fields are declared ``Any`` and unknown keys are kept, so the whitelist
    gate and the validation rules, not pydantic, decide what is accepted.
    JSON numbers are turned into strings; every other type is passed on as is.
    """

    model_config = ConfigDict(extra="allow")

    def fields(self) -> dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        data.update(self.model_extra or {})
        return {name: _number_to_str(value) for name, value in data.items()}


def _number_to_str(value: Any) -> Any:
    # bool is an int subclass but true is not an amount
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value
