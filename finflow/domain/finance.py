"""Money arithmetic: EMI schedules and invoice totals"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

from finflow.domain.exceptions import ValidationError
from finflow.domain.models import EmiBreakdown, InvoiceLineItem, InvoiceTotals

CENT = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round to paise with half-up rounding"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_emi(principal: Decimal, annual_rate: Decimal, tenure_months: int) -> EmiBreakdown:
    """
    Equated monthly installment for an amortizing loan.

    EMI = P * r * (1 + r)^n / ((1 + r)^n - 1), with r the monthly rate
    (annual_rate / 12 / 100). A zero rate degenerates to P / n.

    Example:
        P = 500000, 12% p.a., n = 24 -> r = 0.01, EMI = 23536.74,
        total interest = 23536.74 * 24 - 500000 = 64881.76
    """
    principal = Decimal(principal)
    annual_rate = Decimal(annual_rate)

    if principal <= 0:
        raise ValidationError.for_field("amount", "Principal must be positive")
    if tenure_months <= 0:
        raise ValidationError.for_field("tenureMonths", "Tenure must be at least one month")
    if annual_rate < 0:
        raise ValidationError.for_field("interestRate", "Interest rate cannot be negative")

    monthly_rate = annual_rate / Decimal(12) / Decimal(100)
    if monthly_rate == 0:
        emi = quantize_money(principal / tenure_months)
    else:
        growth = (1 + monthly_rate) ** tenure_months
        emi = quantize_money(principal * monthly_rate * growth / (growth - 1))

    total_amount = emi * tenure_months
    return EmiBreakdown(
        principal=quantize_money(principal),
        annual_rate=annual_rate,
        tenure_months=tenure_months,
        emi=emi,
        total_amount=total_amount,
        total_interest=total_amount - quantize_money(principal),
    )


def calculate_invoice_totals(items: Iterable[InvoiceLineItem], tax_rate: Decimal) -> InvoiceTotals:
    """
    Subtotal, GST and grand total for a set of invoice lines.

    Line amounts are quantity * rate; tax is subtotal * tax_rate / 100.
    Each figure is rounded to paise independently so the parts add up to the total.
    """
    tax_rate = Decimal(tax_rate)
    if tax_rate < 0 or tax_rate > 100:
        raise ValidationError.for_field("taxRate", "Tax rate must be between 0 and 100")

    lines: List[InvoiceLineItem] = list(items)
    if not lines:
        raise ValidationError.for_field("items", "At least one item is required")

    subtotal = quantize_money(sum((line.amount for line in lines), Decimal("0")))
    tax_amount = quantize_money(subtotal * tax_rate / Decimal(100))

    return InvoiceTotals(
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
    )
