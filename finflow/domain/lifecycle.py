"""Status lifecycles and the multi-step loan application wizard"""

from decimal import Decimal
from typing import Dict, FrozenSet, List, Optional, Tuple

from finflow.domain.exceptions import ValidationError
from finflow.domain.models import LOAN_WIZARD_STEPS

Transitions = Dict[str, FrozenSet[str]]

LOAN_TRANSITIONS: Transitions = {
    "draft": frozenset({"submitted"}),
    "submitted": frozenset({"approved", "rejected"}),
    "approved": frozenset({"disbursed"}),
    "rejected": frozenset(),
    "disbursed": frozenset(),
}

INVOICE_TRANSITIONS: Transitions = {
    "pending": frozenset({"paid", "overdue"}),
    "overdue": frozenset({"paid"}),
    "paid": frozenset(),
}

PAYMENT_TRANSITIONS: Transitions = {
    "pending": frozenset({"completed", "failed"}),
    "completed": frozenset(),
    "failed": frozenset(),
}

GST_TRANSITIONS: Transitions = {
    "pending": frozenset({"filed", "overdue"}),
    "overdue": frozenset({"filed"}),
    "filed": frozenset(),
}

KYC_DOCUMENT_TRANSITIONS: Transitions = {
    "pending": frozenset({"approved", "rejected"}),
    "approved": frozenset(),
    "rejected": frozenset(),
}

WIZARD_ACTIONS = ("submit", "save_draft")

# Statuses in which the applicant may still drive the wizard
_WIZARD_STATUSES = ("draft", "submitted")


def check_transition(transitions: Transitions, current: str, target: str) -> str:
    """
    Validate a status change against a lifecycle table.

    Setting the current status again is a no-op and always allowed.

    Raises:
        ValidationError: target is unknown or not reachable from current
    """
    if target == current:
        return target
    if target not in transitions:
        raise ValidationError.for_field("status", f"Unknown status '{target}'")
    if target not in transitions.get(current, frozenset()):
        raise ValidationError.for_field("status", f"Cannot change status from '{current}' to '{target}'")
    return target


def check_loan_status_change(current: str, target: str) -> str:
    """Back-office status change; 'submitted' is only reachable through the wizard"""
    if target == "submitted" and current != "submitted":
        raise ValidationError.for_field("status", "Applications are submitted by completing the final step")
    return check_transition(LOAN_TRANSITIONS, current, target)


def _strict_errors(amount: Optional[Decimal], tenure_months: Optional[int], purpose: Optional[str]) -> List[Dict[str, str]]:
    errors = []
    if amount is None or amount <= 0:
        errors.append({"field": "amount", "message": "Amount must be greater than zero"})
    if tenure_months is None or tenure_months <= 0:
        errors.append({"field": "tenureMonths", "message": "Tenure must be at least one month"})
    if not purpose or not purpose.strip():
        errors.append({"field": "purpose", "message": "Purpose is required"})
    return errors


def apply_wizard_action(
    *,
    action: str,
    status: Optional[str],
    current_step: Optional[int],
    requested_step: Optional[int],
    amount: Optional[Decimal],
    tenure_months: Optional[int],
    purpose: Optional[str],
) -> Tuple[str, int]:
    """
    Resolve the (status, current_step) an application reaches after a wizard action.

    status/current_step are None when the application is being created.
    requested_step is the step the applicant lands on after the action.

    Rules:
    - save_draft keeps the application in draft with lenient field checks and
      never moves the step forward.
    - submit validates the merged fields strictly; the step may stay or advance
      by one (any step on create). Reaching the final step submits the application.
    - Re-submitting the final step of a submitted application is idempotent.
    """
    if action not in WIZARD_ACTIONS:
        raise ValidationError.for_field("action", f"Unknown action '{action}'")

    creating = status is None
    if not creating and status not in _WIZARD_STATUSES:
        raise ValidationError.for_field("status", f"Application is {status} and can no longer be edited")

    if requested_step is None:
        if creating:
            requested_step = 1
        elif action == "submit":
            requested_step = min(current_step + 1, LOAN_WIZARD_STEPS)
        else:
            requested_step = current_step

    if not 1 <= requested_step <= LOAN_WIZARD_STEPS:
        raise ValidationError.for_field("currentStep", f"Step must be between 1 and {LOAN_WIZARD_STEPS}")

    if action == "save_draft":
        if status == "submitted":
            raise ValidationError.for_field("status", "Submitted applications cannot be saved as draft")
        if not creating and requested_step > current_step:
            raise ValidationError.for_field("currentStep", "Saving a draft does not advance the application")
        return "draft", requested_step

    errors = _strict_errors(amount, tenure_months, purpose)
    if errors:
        raise ValidationError("Application is incomplete", errors)

    if status == "submitted":
        if requested_step != LOAN_WIZARD_STEPS:
            raise ValidationError.for_field("currentStep", "Application has already been submitted")
        return "submitted", LOAN_WIZARD_STEPS

    if not creating and requested_step not in (current_step, current_step + 1):
        raise ValidationError.for_field("currentStep", f"Cannot move from step {current_step} to step {requested_step}")

    new_status = "submitted" if requested_step == LOAN_WIZARD_STEPS else "draft"
    return new_status, requested_step
