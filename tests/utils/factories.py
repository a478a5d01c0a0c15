"""Test data factories using Faker."""

from faker import Faker
from typing import Optional
from datetime import date, datetime, timedelta, timezone

fake = Faker()


def create_transaction_row(profile_id: Optional[str] = None, status: str = "listed") -> dict:
    """Create a transactions table row."""
    return {
        "id": fake.uuid4(),
        "profile_id": profile_id or fake.uuid4(),
        "property_address": fake.street_address(),
        "status": status,
        "agent_side": "seller_side",
        "sales_price": fake.random_int(min=300000, max=2000000),
        "close_date": (date.today() + timedelta(days=fake.random_int(min=10, max=60))).isoformat(),
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


def create_task_row(transaction_id: Optional[str] = None, completed: bool = False) -> dict:
    """Create a task_items table row."""
    return {
        "id": fake.uuid4(),
        "transaction_id": transaction_id or fake.uuid4(),
        "task_name": fake.sentence(nb_words=4),
        "section": "in_contract",
        "completed": completed,
        "due_date": (date.today() + timedelta(days=fake.random_int(min=1, max=30))).isoformat(),
    }


def create_event_row(profile_id: Optional[str] = None, start_time: Optional[str] = None) -> dict:
    """Create a calendar_events table row."""
    return {
        "id": fake.uuid4(),
        "profile_id": profile_id or fake.uuid4(),
        "title": fake.sentence(nb_words=3),
        "start_time": start_time or datetime.now(timezone.utc).isoformat(),
        "location": fake.street_address(),
    }


def create_reso_record(listing_key: Optional[str] = None) -> dict:
    """Create a RESO Property record as returned by the MLS API."""
    return {
        "ListingKey": listing_key or f"ML{fake.random_int(min=10000000, max=99999999)}",
        "UnparsedAddress": fake.street_address(),
        "City": fake.city(),
        "PostalCode": fake.postcode(),
        "ListPrice": fake.random_int(min=300000, max=2000000),
        "BedroomsTotal": 3,
        "BathroomsTotalInteger": 2,
        "LivingArea": 1650,
        "YearBuilt": 1987,
        "PropertyType": "Residential",
        "StandardStatus": "Active",
    }
