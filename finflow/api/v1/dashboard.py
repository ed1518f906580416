"""GET /api/dashboard/metrics - Dashboard summary for the signed-in user"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finflow.api.dependencies import get_current_user
from finflow.api.v1.schemas import DashboardMetricsResponse, GstFilingResponse
from finflow.domain.dashboard import build_dashboard_metrics
from finflow.infrastructure.database.models import User
from finflow.infrastructure.database.repositories import (
    GstFilingRepository,
    InvoiceRepository,
    LoanApplicationRepository,
)
from finflow.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/dashboard/metrics", response_model=DashboardMetricsResponse)
def get_dashboard_metrics(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Summarize revenue, loans, invoices and GST deadlines.

    Returns:
        Figures recomputed from current records on every call
    """
    metrics = build_dashboard_metrics(
        user.id,
        invoices=InvoiceRepository(db),
        loans=LoanApplicationRepository(db),
        filings=GstFilingRepository(db),
    )

    return DashboardMetricsResponse(
        total_revenue=metrics.total_revenue,
        active_loans=metrics.active_loans,
        pending_invoices=metrics.pending_invoices,
        overdue_invoices=metrics.overdue_invoices,
        upcoming_gst_filings=[GstFilingResponse.model_validate(f) for f in metrics.upcoming_gst_filings],
    )
