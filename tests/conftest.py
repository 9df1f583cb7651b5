"""Shared fixtures: the Person / Customer / Order sales model."""

import pytest
from semdown.compiler import compile_text

SALES_MODEL = """# Sales model

**Person**: A human being known to the business.
- Person has a Name.
- Person has a Birth Date.

**Customer**: A person who buys from us.
- Customer has a **Person**.
- Customer has a Zipcode, for example "90210".
- Customer is a Person with at least one Order.

**Order**: A request to buy products.
- Order has an Order Date.
- Order has a Customer.
- Order must have an Order Date.
- Order must have an Order Date in the past.
"""

ORDER_MODEL = """**Order**: A request to buy products.
- Order is identified by its Order Number, for example "SO-1001".
- Order has an Order Date.
- Order has a Total Amount (Number).
- Order has a Status, for example 'open'.
"""


@pytest.fixture
def sales_text():
    return SALES_MODEL


@pytest.fixture
def sales_graph():
    return compile_text(SALES_MODEL)


@pytest.fixture
def order_graph():
    return compile_text(ORDER_MODEL)
