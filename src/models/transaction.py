"""Transaction models - a property deal owned by one agent profile."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class TransactionStatus(str, Enum):
    """Pipeline stages, in board order."""
    PROSPECTING = "prospecting"
    PRE_LISTING = "pre-listing"
    LISTED = "listed"
    UNDER_CONTRACT = "under-contract"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class AgentSide(str, Enum):
    """Which side(s) of the deal the agent represents."""
    SELLER = "seller_side"
    BUYER = "buyer_side"
    BOTH = "both_sides"
    LANDLORD = "landlord_side"
    TENANT = "tenant_side"


class Transaction(BaseModel):
    """Row of the transactions table. Unknown columns are kept as extras."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    profile_id: Optional[str] = Field(None, description="Owning profile (auth user id)")
    property_address: Optional[str] = Field(None, description="Street address of the property")
    status: Optional[str] = Field(None, description="One of TransactionStatus values")
    property_type: Optional[str] = Field(None, description="single_family, condo, ...")
    agent_side: Optional[str] = Field(None, description="One of AgentSide values")
    mls_number: Optional[str] = None
    apn_number: Optional[str] = None
    escrow_number: Optional[str] = None
    sales_price: Optional[float] = Field(None, ge=0)
    emd_amount: Optional[float] = Field(None, ge=0, description="Earnest money deposit")
    commission_listing: Optional[float] = None
    commission_buyer: Optional[float] = None
    close_date: Optional[str] = Field(None, description="ISO date")
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TransactionCreate(BaseModel):
    """Payload accepted by the transaction-create endpoint."""
    model_config = ConfigDict(extra="allow")

    property_address: str = Field(..., min_length=1)
    status: TransactionStatus = Field(default=TransactionStatus.PROSPECTING)
    property_type: Optional[str] = None
    agent_side: Optional[AgentSide] = None
    mls_number: Optional[str] = None
    sales_price: Optional[float] = Field(None, ge=0)
    emd_amount: Optional[float] = Field(None, ge=0)
    commission_listing: Optional[float] = None
    commission_buyer: Optional[float] = None
    close_date: Optional[str] = None
    notes: Optional[str] = None
