"""Dashboard summary computed fresh from current entity state"""

from decimal import Decimal

from finflow.domain.models import DashboardMetrics

UPCOMING_FILINGS_LIMIT = 5


def build_dashboard_metrics(user_id: str, invoices, loans, filings) -> DashboardMetrics:
    """
    Aggregate one user's dashboard figures.

    Args:
        user_id: Owner whose records are summarized
        invoices: InvoiceRepository
        loans: LoanApplicationRepository
        filings: GstFilingRepository

    Returns:
        DashboardMetrics with revenue from paid invoices, disbursed loan count,
        pending/overdue invoice counts and the next pending GST filings
    """
    total_revenue = sum(invoices.paid_amounts(user_id), Decimal("0.00"))

    return DashboardMetrics(
        total_revenue=total_revenue,
        active_loans=loans.count_by_status(user_id, "disbursed"),
        pending_invoices=invoices.count_by_status(user_id, "pending"),
        overdue_invoices=invoices.count_by_status(user_id, "overdue"),
        upcoming_gst_filings=filings.upcoming(user_id, limit=UPCOMING_FILINGS_LIMIT),
    )
