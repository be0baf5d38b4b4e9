import io
from typing import List

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.user import User


def generate_invoice_pdf(order: Order, user: User, items: List[OrderItem]) -> bytes:
    """Render the invoice for an order as PDF bytes."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    y = height - 60

    # Title
    c.setFont("Helvetica-Bold", 18)
    c.drawString(60, y, f"Invoice {order.invoice_number}")
    y -= 30

    # Customer Info
    c.setFont("Helvetica", 11)
    c.drawString(60, y, f"Customer: {user.full_name}")
    y -= 16
    c.drawString(60, y, f"Email: {user.email}")
    y -= 16
    c.drawString(60, y, f"Date: {order.created_at.strftime('%Y-%m-%d')}")
    y -= 16
    c.drawString(60, y, f"Order: #{order.id}")
    y -= 28

    # Items Header
    c.setFont("Helvetica-Bold", 11)
    c.drawString(60, y, "Course")
    c.drawString(360, y, "Qty")
    c.drawString(420, y, "Price")
    y -= 18

    c.setFont("Helvetica", 10)
    for item in items:
        if y < 80:
            c.showPage()
            c.setFont("Helvetica", 10)
            y = height - 60
        c.drawString(60, y, item.title_en[:55])
        c.drawString(360, y, str(item.qty))
        c.drawString(420, y, f"{item.price * item.qty:.2f} {item.currency}")
        y -= 15

    # Totals
    y -= 20
    c.setFont("Helvetica-Bold", 12)
    c.drawString(60, y, f"Total: {order.amount:.2f} {order.currency}")
    y -= 18
    c.drawString(60, y, f"Status: {order.status.value}")

    c.save()
    return buffer.getvalue()
