"""
Planner output schema and validator.
What it does:
- Defines PlannerOutput (the structured decision of one planning step)
- Checks the raw shape (mapping, every field present, text fields are strings)
- Coerces boolean fields from true/false or "true"/"false" (any case)
- Reports the first field that violates its rule

And, the main purpose:
Turn untyped model / server output into a strict PlannerOutput without
silently defaulting anything.
"""


from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr

TEXT_FIELDS = ("observation", "challenges", "next_steps", "final_answer", "reasoning")
BOOL_FIELDS = ("done", "web_task")
FIELD_ORDER = ("observation", "challenges", "done", "next_steps", "final_answer", "reasoning", "web_task")


class PlannerOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    observation: StrictStr
    challenges: StrictStr
    done: StrictBool
    next_steps: StrictStr
    final_answer: StrictStr
    reasoning: StrictStr
    web_task: StrictBool


class ValidationResult(BaseModel):
    ok: bool
    value: Optional[PlannerOutput] = None
    field: Optional[str] = None
    error: str = ""


class OutputValidationError(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(f"Invalid planner output field '{field}': {message}")
        self.field = field


def _coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        low = value.lower()
        if low == "true":
            return True
        if low == "false":
            return False
    return None


def _fail(field: str, error: str) -> ValidationResult:
    return ValidationResult(ok=False, field=field, error=error)


def validate_planner_output(raw: Any) -> ValidationResult:
    if not isinstance(raw, dict):
        return _fail("<root>", f"expected an object, got {type(raw).__name__}")

    # phase 1: shape
    for name in FIELD_ORDER:
        if name not in raw:
            return _fail(name, "required")
        if name in TEXT_FIELDS and not isinstance(raw[name], str):
            return _fail(name, f"expected string, got {type(raw[name]).__name__}")

    # phase 2: coercion
    coerced = {name: raw[name] for name in FIELD_ORDER}
    for name in FIELD_ORDER:
        if name not in BOOL_FIELDS:
            continue
        flag = _coerce_bool(raw[name])
        if flag is None:
            return _fail(name, f"invalid boolean {raw[name]!r}")
        coerced[name] = flag

    return ValidationResult(ok=True, value=PlannerOutput(**coerced))


def parse_planner_output(raw: Any) -> PlannerOutput:
    res = validate_planner_output(raw)
    if not res.ok:
        raise OutputValidationError(res.field or "<root>", res.error)
    return res.value
