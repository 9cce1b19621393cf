"""Map a JSON order document onto annotated classes and back.

Usage::

    python examples/map_order.py
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Annotated

from jsonmap import Converter, JsonProperty, deserialize, dumps, json_model, serialize

# Switch to DEBUG and pass debug=True to deserialize for per-property traces
logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")

iso_date = Converter(
    to_json=lambda d: d.isoformat() if d else None,
    from_json=lambda s: date.fromisoformat(s) if s else None,
)


@json_model
@dataclass
class Line:
    sku: str = ""
    quantity: Annotated[int, JsonProperty("qty")] = 0


@json_model
@dataclass
class Customer:
    name: str = ""
    email: str = ""


@json_model
@dataclass
class Order:
    order_id: Annotated[str, JsonProperty("orderId")] = ""
    placed: Annotated[date | None, JsonProperty("placedOn", converter=iso_date)] = None
    customer: Customer | None = None
    lines: list[Line] | None = None
    internal_note: Annotated[str, JsonProperty(exclude_from_output=True)] = ""


def main() -> None:
    """Round-trip an order through the mapper."""
    payload = {
        "orderId": "SO-1001",
        "placedOn": "2024-03-01",
        "customer": {"name": "Ada", "email": "ada@example.com"},
        "lines": [{"sku": "A-1", "qty": 2}, {"sku": "B-7", "qty": 1}],
    }
    order = deserialize(Order, payload)
    print(f"Order {order.order_id} placed {order.placed:%d %b %Y}")
    for line in order.lines:
        print(f"  {line.sku} x{line.quantity}")

    order.internal_note = "never leaves the process"
    print(serialize(order))

    # Encoding to text requires the serialization extra (orjson)
    print(dumps(order, pretty=True).decode())


if __name__ == "__main__":
    main()
