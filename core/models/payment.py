# =============================================================================
# core/models/payment.py - Payment Schemas
# =============================================================================
# Payments are written by the external payment integration; this API
# only reads them. Two physical layouts exist:
# - new: payments.booking_id + teacher_payout_usd / amount_usd
# - legacy: payments.teacher_id + amount
# =============================================================================

from enum import Enum

from pydantic import Field

from .base import CamelModel


class PaymentStatus(str, Enum):
    """Payment lifecycle as reported to teachers."""
    PAID = "paid"
    PENDING_PAYOUT = "pending_payout"
    PAYOUT_COMPLETED = "payout_completed"
    REFUNDED = "refunded"


class Payment(CamelModel):
    """One payment line in a teacher's earnings history."""
    id: str
    amount: float = 0.0
    currency: str = "USD"
    status: PaymentStatus = PaymentStatus.PENDING_PAYOUT
    booking_id: str | None = None
    created_at: str | None = None
    payout_date: str | None = None
    payment_method: str = "Unknown"
    teacher_name: str | None = None
    student_name: str | None = None
    lesson_subject: str | None = None
    lesson_date: str | None = None


class EarningsSummary(CamelModel):
    """Aggregated teacher earnings."""
    total_earnings: float = Field(default=0.0, ge=0)
    this_month_earnings: float = Field(default=0.0, ge=0)
    last_month_earnings: float = Field(default=0.0, ge=0)
    pending_payouts: float = Field(default=0.0, ge=0)
