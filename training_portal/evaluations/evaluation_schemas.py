from typing import Dict

from pydantic import BaseModel


class EvaluationSubmit(BaseModel):
    course_id: str
    answers: Dict[str, str]
