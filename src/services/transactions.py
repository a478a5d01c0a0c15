"""Transaction creation on behalf of the signed-in agent."""

from datetime import datetime, timezone
from typing import Optional

from src.models.transaction import TransactionCreate
from src.services.auth import AuthGate, get_auth_gate
from src.services.supabase_client import SupabaseClient
from src.utils.errors import AuthError, SupabaseError
from src.utils.logging import get_structured_logger, log_timing, mask_user_id
from src.utils.settings import Settings

logger = get_structured_logger(__name__)


async def create_transaction(
    payload: dict,
    access_token: Optional[str],
    settings: Optional[Settings] = None,
    gate: Optional[AuthGate] = None,
) -> dict:
    """
    Insert a transaction owned by the session's user.

    Raises AuthError when no user is signed in, pydantic ValidationError on
    a malformed payload, and SupabaseError when the insert fails.
    """
    gate = gate or get_auth_gate()
    user = gate.get_user(access_token)
    if user is None:
        raise AuthError("User not authenticated")

    transaction = TransactionCreate.model_validate(payload)
    now = datetime.now(timezone.utc).isoformat()
    row = {
        **transaction.model_dump(mode="json", exclude_none=True),
        "profile_id": user.id,
        "created_at": now,
        "updated_at": now,
    }

    async with SupabaseClient(access_token, settings=settings) as client:
        with log_timing("insert_transaction", logger=logger, user_id=mask_user_id(user.id)):
            result = await client.from_("transactions").insert([row]).single()

    if result.error is not None:
        raise SupabaseError(result.error.message, code=result.error.code)

    logger.info(
        "Transaction created",
        transaction_id=result.data.get("id") if isinstance(result.data, dict) else None,
        user_id=mask_user_id(user.id),
        status=row.get("status")
    )
    return result.data
