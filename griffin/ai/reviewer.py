"""AI code reviewer — LCEL chain that turns source code into a structured review."""

import json
import re
from typing import Any, Dict, List, Optional

import structlog
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from pydantic import ValidationError as PydanticValidationError

from griffin.ai.llm import get_llm
from griffin.ai.prompts import REVIEW_OUTPUT_SCHEMA, REVIEW_SYSTEM_PROMPT, REVIEW_USER_PROMPT
from griffin.core.exceptions import ReviewGenerationError
from griffin.domain.schemas.review import ReviewResult

logger = structlog.get_logger(__name__)

MAX_TOKENS = 30000
TRUNCATED_MAX_LINES = (MAX_TOKENS * 4) // 100
MAX_FINDINGS = 10

_FENCE_START = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_END = re.compile(r"\n?```\s*$")


def estimate_tokens(text: str) -> int:
    # ~4 characters per token
    return -(-len(text) // 4)


def truncate_code(code: str) -> str:
    lines = code.split("\n")
    if len(lines) <= TRUNCATED_MAX_LINES:
        return code
    kept = lines[:TRUNCATED_MAX_LINES]
    kept += [
        "",
        "// ... Code truncated for analysis ...",
        f"// Original file had {len(lines)} lines, showing first {TRUNCATED_MAX_LINES} lines",
    ]
    return "\n".join(kept)


def strip_markdown_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _FENCE_START.sub("", cleaned)
    cleaned = _FENCE_END.sub("", cleaned)
    return cleaned.strip()


def parse_review(raw: str) -> Dict[str, Any]:
    """Parse model output into a validated, camelCase review dict."""
    cleaned = strip_markdown_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("AI response is not JSON", preview=cleaned[:200])
        raise ReviewGenerationError(f"Failed to parse AI response: {e.msg}") from e
    if not isinstance(data, dict):
        raise ReviewGenerationError("Failed to parse AI response: expected a JSON object")
    try:
        result = ReviewResult.model_validate(data)
    except PydanticValidationError as e:
        logger.warning("AI response does not match the review schema", errors=e.error_count())
        raise ReviewGenerationError(
            "AI response does not match the review schema",
            details={"errors": [{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()]},
        ) from e
    return result.model_dump(by_alias=True, mode="json")


def _format_findings(findings: Optional[List[str]]) -> str:
    if not findings:
        return ""
    lines = [f"\n**PRE-REVIEW FINDINGS:**\nFound {len(findings)} potential issues:"]
    lines += [f"{i}. {finding}" for i, finding in enumerate(findings[:MAX_FINDINGS], start=1)]
    if len(findings) > MAX_FINDINGS:
        lines.append(f"... and {len(findings) - MAX_FINDINGS} more findings")
    return "\n".join(lines) + "\n"


def analyze_code(
    code: str,
    language: str,
    filename: Optional[str] = None,
    findings: Optional[List[str]] = None,
    llm=None,
) -> Dict[str, Any]:
    """Review a piece of code. Raises ReviewGenerationError on unusable output."""
    if estimate_tokens(code) > MAX_TOKENS:
        logger.info("Code truncated before review", estimated_tokens=estimate_tokens(code))
        code = truncate_code(code)

    prompt = ChatPromptTemplate.from_messages([
        ("system", REVIEW_SYSTEM_PROMPT),
        ("human", REVIEW_USER_PROMPT),
    ])
    chain = prompt | (llm or get_llm(temperature=0.1)) | StrOutputParser()

    raw = chain.invoke({
        "schema": REVIEW_OUTPUT_SCHEMA,
        "language": language,
        "filename_line": f"**FILENAME:** {filename}\n" if filename else "",
        "code": code,
        "findings": _format_findings(findings),
    })
    return parse_review(raw)
