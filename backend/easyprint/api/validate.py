from fastapi import APIRouter
from pydantic import BaseModel

from easyprint.models.draft import OrderDraft
from easyprint.models.enums import CheckoutStep
from easyprint.services.validation import Validator

router = APIRouter()


class ValidateRequest(BaseModel):
    step: CheckoutStep
    draft: OrderDraft


@router.post("/")
async def validate_step(req: ValidateRequest):
    issues = Validator().validate_step(req.step, req.draft)
    return {"step": int(req.step), "passed": not issues, "issues": [i.as_dict() for i in issues]}
