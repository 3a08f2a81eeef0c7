# api/feedback_app/schemas/forms.py
from typing import List

from pydantic import Field

from feedback_app.schemas.analytics import CamelModel, PeriodOut


class FormActivationOut(CamelModel):
    id: str
    form_name: str
    is_active: bool
    activation_periods: List[PeriodOut] = Field(default_factory=list)
