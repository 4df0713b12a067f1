"""AI API route — plain-language code explanations."""

from fastapi import APIRouter, Depends

from griffin.ai.explainer import explain_code
from griffin.domain.models.user import User
from griffin.domain.schemas.review import ExplainRequest
from griffin.interfaces.api.deps import get_current_user

router = APIRouter(prefix="/api/ai", tags=["AI"])


def get_explainer():
    return explain_code


@router.post("/explain")
def explain(
    body: ExplainRequest,
    user: User = Depends(get_current_user),
    explainer=Depends(get_explainer),
):
    """Explain a piece of code for a beginner, intermediate or advanced reader."""
    data = explainer(body.code, body.language, level=body.level, focus=body.focus)
    return {"success": True, "data": data}
