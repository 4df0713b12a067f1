"""AI code explainer — free-text explanation tailored to the reader's level."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from griffin.ai.llm import get_llm
from griffin.ai.prompts import EXPLAIN_PROMPT

logger = structlog.get_logger(__name__)


def explain_code(
    code: str,
    language: str,
    level: str = "intermediate",
    focus: Optional[str] = None,
    llm=None,
) -> Dict[str, Any]:
    prompt = ChatPromptTemplate.from_template(EXPLAIN_PROMPT)
    chain = prompt | (llm or get_llm(temperature=0.7, max_tokens=2000)) | StrOutputParser()

    explanation = chain.invoke({
        "language": language,
        "level": level,
        "code": code,
        "focus_line": f"Focus particularly on: {focus}" if focus else "",
    })
    logger.info("Code explained", language=language, level=level, chars=len(explanation))

    return {
        "explanation": explanation,
        "metadata": {
            "language": language,
            "level": level,
            "focus": focus,
            "explainedAt": datetime.now(timezone.utc).isoformat(),
        },
    }
