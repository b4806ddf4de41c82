"""Admin notice sent when a new order is placed."""


def _money(currency: str, amount) -> str:
    return f"{currency} {float(amount or 0):.2f}"


class OrderPlacedAdminTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        code = context.get("order_code", "N/A")
        currency = context.get("currency", "INR")
        shipping = context.get("shipping") or {}
        address = ", ".join(
            part
            for part in (
                shipping.get("address"),
                shipping.get("city"),
                shipping.get("state"),
                shipping.get("postal_code"),
                shipping.get("country"),
            )
            if part
        )

        item_lines = []
        for item in context.get("items", []):
            variant = " / ".join(part for part in (item.get("size"), item.get("color")) if part)
            label = f"{item.get('name')} ({variant})" if variant else item.get("name")
            item_lines.append(
                f"  - {label} x{item.get('quantity')} @ {_money(currency, item.get('price'))}"
            )

        body = "\n".join(
            [
                f"New order #{code}",
                "",
                f"Customer: {context.get('customer_name') or 'N/A'} <{context.get('customer_email') or 'N/A'}>",
                f"Payment: {context.get('payment_status', 'pending')} via {context.get('payment_provider', 'manual')}",
                "",
                f"Items: {_money(currency, context.get('items_price'))}",
                f"Shipping: {_money(currency, context.get('shipping_price'))}",
                f"Gift wrap: {_money(currency, context.get('gift_wrap_price'))}",
                f"Total: {_money(currency, context.get('total_price'))}",
                "",
                f"Ship to: {shipping.get('full_name') or 'N/A'}, {address or 'N/A'}",
                f"Phone: {shipping.get('phone') or 'N/A'}",
                "",
                "Items:",
                *item_lines,
            ]
        )
        return {"subject": f"New order #{code}", "body": body}
