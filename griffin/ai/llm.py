"""LLM configuration — supports OpenAI and Gemini."""

from griffin.config import get_settings

settings = get_settings()


def get_llm(temperature: float = 0.1, max_tokens: int | None = None):
    """Get the configured chat model."""
    if settings.AI_PROVIDER == "openai":
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
    else:
        from langchain_google_genai import ChatGoogleGenerativeAI
        return ChatGoogleGenerativeAI(
            google_api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            temperature=temperature,
            max_output_tokens=max_tokens,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
