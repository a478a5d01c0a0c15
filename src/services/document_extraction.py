"""Purchase-contract term extraction using LangChain with structured output."""

import os
import time
from typing import Optional

from langchain_anthropic import ChatAnthropic
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field

from src.utils.errors import ExtractionError
from src.utils.logging import get_structured_logger, get_correlation_id
from src.utils.settings import Settings, get_settings

logger = get_structured_logger(__name__)

# Contracts are long; the key terms sit in the first pages.
MAX_DOCUMENT_CHARS = 60000


class ContractTerms(BaseModel):
    """Key terms of a residential purchase agreement. Unknown values stay null."""
    sales_price: Optional[float] = Field(None, ge=0, description="Purchase price in dollars")
    emd_amount: Optional[float] = Field(None, ge=0, description="Earnest money deposit in dollars")
    investigation_contingency_days: Optional[int] = Field(None, ge=0, description="Days for buyer investigation")
    loan_contingency_days: Optional[int] = Field(None, ge=0, description="Days for loan contingency removal")
    appraisal_contingency_days: Optional[int] = Field(None, ge=0, description="Days for appraisal contingency removal")


def build_extraction_prompt(document_text: str) -> str:
    text = document_text[:MAX_DOCUMENT_CHARS]
    return f"""You extract terms from a residential real-estate purchase agreement.
Return only the fields of the schema. Never guess: if a term is not stated, use null.
Amounts are plain numbers in dollars without symbols or separators.
Contingency periods are whole numbers of days.

Document:
{text}"""


def get_llm_model(settings: Optional[Settings] = None):
    """Get configured LLM model."""
    settings = settings or get_settings()
    provider = settings.llm_provider

    if provider == "anthropic":
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ExtractionError("ANTHROPIC_API_KEY not set")
        return ChatAnthropic(model=settings.llm_model, api_key=api_key)
    elif provider == "openai":
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ExtractionError("OPENAI_API_KEY not set")
        return ChatOpenAI(model=settings.llm_model, api_key=api_key)
    else:
        raise ExtractionError(f"Unsupported LLM provider: {provider}")


def extract_contract_terms(document_text: str, settings: Optional[Settings] = None, model=None) -> ContractTerms:
    """Extract purchase-agreement terms from document text."""
    if not document_text or not document_text.strip():
        return ContractTerms()

    correlation_id = get_correlation_id()
    model = model or get_llm_model(settings)
    prompt = build_extraction_prompt(document_text)

    logger.info(
        "Contract extraction started",
        correlation_id=correlation_id,
        document_chars=len(document_text),
        truncated=len(document_text) > MAX_DOCUMENT_CHARS
    )

    start = time.time()
    try:
        structured_llm = model.with_structured_output(ContractTerms)
        terms = structured_llm.invoke(prompt)
    except Exception as e:
        logger.error("Contract extraction failed", correlation_id=correlation_id, error=str(e), exc_info=True)
        raise ExtractionError(f"Failed to extract contract terms: {e}")

    if isinstance(terms, dict):
        terms = ContractTerms(**terms)

    logger.info(
        "Contract extraction finished",
        correlation_id=correlation_id,
        llm_latency_ms=round((time.time() - start) * 1000, 2),
        fields_found=sum(1 for v in terms.model_dump().values() if v is not None)
    )
    return terms
