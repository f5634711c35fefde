# =============================================================================
# core/services/payment_service.py - Teacher Payments & Earnings
# =============================================================================
# Payments are read-only here. Two table layouts are supported:
#
#   new:    payments.booking_id + teacher_payout_usd (or amount_usd),
#           joined to bookings for the teacher filter and display info
#   legacy: payments.teacher_id + amount, status "completed" for paid
#
# The layout is probed on every call. Reads never raise.
# =============================================================================

import logging
from datetime import date, datetime
from typing import Any, Callable
from uuid import UUID

from supabase import Client

from app.config import settings
from core.mappers import join_name, map_legacy_payment, map_payment
from core.models.payment import EarningsSummary, Payment, PaymentStatus
from lib.fallback import EmptyResult, FallbackChain
from lib.schema import ColumnProber, SchemaResolver
from lib.utils import normalize_uuid, to_number, utc_now

logger = logging.getLogger(__name__)

TABLE = "payments"

EARNED_STATUSES = [PaymentStatus.PAID.value, PaymentStatus.PAYOUT_COMPLETED.value]

LEGACY_PAID_STATUS = "completed"


def month_start(day: date) -> date:
    return day.replace(day=1)


def previous_month_start(day: date) -> date:
    first = month_start(day)
    if first.month == 1:
        return first.replace(year=first.year - 1, month=12)
    return first.replace(month=first.month - 1)


class PaymentService:
    """
    Service for teacher payment history and earnings.

    Args:
        client: Supabase client handle
        resolver: Schema resolver (defaults to an uncached one over `client`)
        clock: Returns the current UTC time (month boundaries)
    """

    def __init__(
        self,
        client: Client,
        resolver: SchemaResolver | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.resolver = resolver or SchemaResolver(ColumnProber(client))
        self.clock = clock
        self.currency = settings.DEFAULT_CURRENCY

    # -------------------------------------------------------------------------
    # Payment history
    # -------------------------------------------------------------------------

    def get_teacher_payments(self, teacher_id: str | UUID) -> list[Payment]:
        """
        Get a teacher's payments, newest first.

        Returns:
            Payments with student/teacher names and lesson info where the
            new layout provides them; [] when missing or on failure
        """
        teacher_id_str = normalize_uuid(teacher_id)

        try:
            prober = self.resolver.prober
            if not prober.table_exists(TABLE):
                return []

            amount_column = self.resolver.resolve_column(TABLE, ["teacher_payout_usd", "amount_usd"])
            if amount_column and prober.column_exists(TABLE, "booking_id"):
                return self._payments_new_layout(teacher_id_str, amount_column)

            logger.warning("Using legacy payment layout (payments.teacher_id)")
            return self._payments_legacy_layout(teacher_id_str)

        except Exception as e:
            logger.error(f"Failed to fetch payments for teacher {teacher_id_str}: {e}")
            return []

    def _payments_new_layout(self, teacher_id: str, amount_column: str) -> list[Payment]:
        columns = (
            f"id, amount:{amount_column}, currency, status, booking_id, created_at, "
            "payout_date, payment_method, "
            "bookings!inner(teacher_id, student_id, lesson_id, start_time_utc, "
            "lessons(title, subject_id, subjects(name)))"
        )
        response = (
            self.client.table(TABLE)
            .select(columns)
            .eq("bookings.teacher_id", teacher_id)
            .order("created_at", desc=True)
            .execute()
        )
        rows = response.data or []

        bookings = [row.get("bookings") or {} for row in rows]
        teacher_names = self._names("teachers", {b.get("teacher_id") for b in bookings})
        student_names = self._names("students", {b.get("student_id") for b in bookings})

        return [map_payment(row, teacher_names, student_names, self.currency) for row in rows]

    def _payments_legacy_layout(self, teacher_id: str) -> list[Payment]:
        response = (
            self.client.table(TABLE)
            .select("id, amount, currency, status, teacher_id, student_id, lesson_id, created_at, payment_method")
            .eq("teacher_id", teacher_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [map_legacy_payment(row, self.currency) for row in (response.data or [])]

    def _names(self, table: str, ids: set[Any]) -> dict[str, str]:
        """id -> "First Last" from a base profile table; {} on failure."""
        ids = sorted(str(i) for i in ids if i)
        if not ids:
            return {}
        try:
            response = self.client.table(table).select("id, first_name, last_name").in_("id", ids).execute()
        except Exception as e:
            logger.warning(f"Could not load names from {table}: {e}")
            return {}

        names = {}
        for row in response.data or []:
            name = join_name(row.get("first_name"), row.get("last_name"))
            if name:
                names[str(row.get("id"))] = name
        return names

    # -------------------------------------------------------------------------
    # Earnings summary
    # -------------------------------------------------------------------------

    def get_earnings_summary(self, teacher_id: str | UUID) -> EarningsSummary:
        """
        Total, this-month, last-month and pending teacher earnings.

        New layout: sums of teacher_payout_usd joined through bookings,
        falling back to the get_teacher_earnings RPC. Legacy layout: sum of
        `amount` for completed payments (other figures are 0).

        Returns:
            EarningsSummary; all zeros on failure
        """
        teacher_id_str = normalize_uuid(teacher_id)

        try:
            prober = self.resolver.prober
            new_layout = prober.column_exists(TABLE, "teacher_payout_usd") and prober.column_exists(TABLE, "booking_id")

            if new_layout:
                chain: FallbackChain[EarningsSummary] = FallbackChain("earnings_summary", default=EarningsSummary())
                chain.add("joined_sums", lambda: self._earnings_joined(teacher_id_str))
                chain.add("rpc", lambda: self._earnings_rpc(teacher_id_str))
                return chain.run().value

            logger.warning("Using legacy payment layout for earnings summary")
            return self._earnings_legacy(teacher_id_str)

        except Exception as e:
            logger.error(f"Failed to compute earnings for teacher {teacher_id_str}: {e}")
            return EarningsSummary()

    def _sum_payouts(self, teacher_id: str, refine: Callable[[Any], Any]) -> float:
        query = (
            self.client.table(TABLE)
            # !inner so the teacher filter drops other teachers' payments
            .select("teacher_payout_usd, bookings!inner(teacher_id)")
            .eq("bookings.teacher_id", teacher_id)
        )
        response = refine(query).execute()
        return sum(to_number(row.get("teacher_payout_usd")) for row in (response.data or []))

    def _sum_or_zero(self, label: str, teacher_id: str, refine: Callable[[Any], Any]) -> float:
        try:
            return self._sum_payouts(teacher_id, refine)
        except Exception as e:
            logger.error(f"Failed to sum {label} earnings for teacher {teacher_id}: {e}")
            return 0.0

    def _earnings_joined(self, teacher_id: str) -> EarningsSummary:
        today = self.clock().date()
        this_month = month_start(today).isoformat()
        last_month = previous_month_start(today).isoformat()

        # The all-time sum decides whether the joined layout works at all
        total = self._sum_payouts(teacher_id, lambda q: q.in_("status", EARNED_STATUSES))

        return EarningsSummary(
            total_earnings=total,
            this_month_earnings=self._sum_or_zero(
                "this month", teacher_id,
                lambda q: q.in_("status", EARNED_STATUSES).gte("created_at", this_month),
            ),
            last_month_earnings=self._sum_or_zero(
                "last month", teacher_id,
                lambda q: q.in_("status", EARNED_STATUSES).gte("created_at", last_month).lt("created_at", this_month),
            ),
            pending_payouts=self._sum_or_zero(
                "pending", teacher_id,
                lambda q: q.eq("status", PaymentStatus.PENDING_PAYOUT.value),
            ),
        )

    def _earnings_rpc(self, teacher_id: str) -> EarningsSummary:
        data = self.client.rpc("get_teacher_earnings", {"teacher_id": teacher_id}).execute().data
        if isinstance(data, list):
            data = data[0] if data else None
        if not data:
            raise EmptyResult("get_teacher_earnings returned no row")

        return EarningsSummary(
            total_earnings=to_number(data.get("total_earnings")),
            this_month_earnings=to_number(data.get("this_month_earnings")),
            last_month_earnings=to_number(data.get("last_month_earnings")),
            pending_payouts=to_number(data.get("pending_payouts")),
        )

    def _earnings_legacy(self, teacher_id: str) -> EarningsSummary:
        response = (
            self.client.table(TABLE)
            .select("amount")
            .eq("teacher_id", teacher_id)
            .eq("status", LEGACY_PAID_STATUS)
            .execute()
        )
        total = sum(to_number(row.get("amount")) for row in (response.data or []))
        return EarningsSummary(total_earnings=total)
