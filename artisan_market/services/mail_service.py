# artisan_market/services/mail_service.py
"""Outbound notification mail. Every send is best-effort."""
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from ..config import MailSettings
from ..utils.money import as_number

log = logging.getLogger(__name__)


class Mailer:
    def __init__(self, settings: MailSettings, transport=None):
        self.settings = settings
        # transport(host, port) -> SMTP-like context manager
        self._transport = transport or smtplib.SMTP_SSL

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.enabled or not to:
            return False
        msg = EmailMessage()
        msg["From"] = self.settings.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")
        try:
            with self._transport(self.settings.host, self.settings.port) as smtp:
                smtp.login(self.settings.sender, self.settings.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            log.error("mail to %s failed: %s", to, e)
            return False
        return True

    # ---- notifications ----------------------------------------------------
    def order_placed(self, orders, customer_email, customer_name, payment_id=None):
        if not orders:
            return
        payment_line = f"<p><b>Payment ID:</b> {payment_id}</p>" if payment_id else ""
        if customer_email:
            total = sum(as_number(o.amount) for o in orders)
            lines = "<br/>".join(f"&bull; {o.product_name or 'Item'}: ₹{as_number(o.amount)}" for o in orders)
            self.send(
                customer_email,
                f"Your Artisan Market Order ({orders[0].short_ref})",
                f"<p>Hi {customer_name or 'there'},</p>"
                f"<p>Thank you for your purchase! Here is your order summary:</p>"
                f"<p>{lines}</p><p><b>Total:</b> ₹{total}</p>{payment_line}"
                f"<p>We will notify you when your items are shipped.</p>",
            )
        for o in orders:
            artisan = o.artisan
            if not artisan or not artisan.email:
                continue
            self.send(
                artisan.email,
                f"New Order Received: {o.product_name or 'Item'}",
                f"<p>Hi {artisan.name or 'Artisan'},</p>"
                f"<p>You received a new order for <b>{o.product_name or 'your product'}</b>.</p>"
                f"<p><b>Customer:</b> {customer_name or 'Customer'} ({customer_email or ''})</p>"
                f"<p><b>Amount:</b> ₹{as_number(o.amount)}</p>{payment_line}"
                f"<p>Please prepare for shipment.</p>",
            )

    def status_changed(self, order):
        if not order.customer_email:
            return
        self.send(
            order.customer_email,
            f"Your order {order.short_ref} is {order.status}",
            f"<p>Hi {order.customer_name or 'there'},</p>"
            f"<p>Your order status has been updated to <b>{order.status}</b>.</p>"
            f"<p>Product: {order.product_name or 'Item'}</p>"
            f"<p>Amount: ₹{as_number(order.amount)}</p>"
            f"<p>Thanks for shopping with Artisan Market.</p>",
        )

    def product_added(self, product, artisan):
        if not self.enabled:
            log.info("admin email not configured, skipping product notification")
            return
        self.send(
            self.settings.sender,
            f"[Artisan Market] New Product Added: {product.name}",
            f"<h2>New Product Added</h2>"
            f"<p><strong>Product Name:</strong> {product.name}</p>"
            f"<p><strong>Artisan:</strong> {artisan.name} ({artisan.email})</p>"
            f"<p><strong>Price:</strong> ₹{as_number(product.price)}</p>"
            f"<p><strong>Category:</strong> {product.category or 'Not specified'}</p>"
            f"<p><strong>Region:</strong> {product.region or 'Not specified'}</p>"
            f"<p><strong>Description:</strong> {product.description}</p>",
        )
