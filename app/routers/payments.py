# =============================================================================
# app/routers/payments.py - Teacher Earnings Endpoints
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user
from app.dependencies import PaymentServiceDep
from core.models.payment import EarningsSummary, Payment

router = APIRouter()


@router.get("", response_model=list[Payment])
def list_payments(
    service: PaymentServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """The calling teacher's payments, newest first."""
    return service.get_teacher_payments(user.id)


@router.get("/earnings", response_model=EarningsSummary)
def earnings_summary(
    service: PaymentServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """All-time, this month, last month and pending payout totals."""
    return service.get_earnings_summary(user.id)
