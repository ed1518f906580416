"""Payment-link providers for UPI collect requests"""

import base64
import uuid
from decimal import Decimal
from typing import Optional, Protocol
from urllib.parse import urlencode
from xml.sax.saxutils import escape

from finflow.config import settings
from finflow.domain.models import PaymentLink


class PaymentLinkProvider(Protocol):
    """Issues a shareable payment link and QR code for an amount"""

    def create_link(self, amount: Decimal, description: Optional[str] = None) -> PaymentLink:
        ...


class MockPaymentLinkProvider:
    """
    Placeholder provider: no gateway is contacted.

    The link points at the app's own /pay page and the QR code is an SVG data
    URI labelled with the UPI deep link a real provider would encode.
    """

    def __init__(self, base_url: str | None = None, vpa: str | None = None):
        self.base_url = (base_url or settings.payment_link_base_url).rstrip("/")
        self.vpa = vpa or settings.upi_vpa

    def upi_uri(self, payment_id: str, amount: Decimal, description: Optional[str]) -> str:
        params = {"pa": self.vpa, "pn": "FinFlow", "am": f"{amount:.2f}", "cu": "INR", "tr": payment_id}
        if description:
            params["tn"] = description
        return f"upi://pay?{urlencode(params)}"

    def create_link(self, amount: Decimal, description: Optional[str] = None) -> PaymentLink:
        payment_id = f"PAY_{uuid.uuid4().hex[:16].upper()}"
        svg = (
            '<svg xmlns="http://www.w3.org/2000/svg" width="200" height="200">'
            '<rect width="200" height="200" fill="white"/>'
            '<text x="100" y="100" text-anchor="middle" font-family="Arial" font-size="12">QR Code</text>'
            f"<desc>{escape(self.upi_uri(payment_id, amount, description))}</desc>"
            "</svg>"
        )
        qr_code = "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")

        return PaymentLink(
            payment_id=payment_id,
            payment_link=f"{self.base_url}/pay/{payment_id}",
            qr_code=qr_code,
        )
