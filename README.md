# sagaflow

sagaflow holds the data records of an order *saga* — a workflow of calls to
an order, a payment and a shipping service, where completed steps are
undone by compensating actions when a later step fails — and a client that
sends sample orders to a saga orchestrator over HTTP and prints what became
of them.

Only the standard library is needed.

## Installation

```
pip install .
```

## The records: `sagaflow.models`

* `TransactionStatus` — `PENDING`, `COMPLETED` or `FAILED`, for a
  transaction and for each of its steps.
* `Item` — one order line: `id`, `name`, `price`, `quantity`.
* `CreateOrderRequest` — `customer_id`, `items`, `amount`, `address`.
* `Step` — one action of a saga: `name`, `status`, `started_at`,
  `ended_at`, `error`.
* `Transaction` — one saga run: `id`, `customer_id`, `amount`, `address`,
  `order_id`, `status`, `created_at`, `completed_at`, `failure_reason`,
  `steps`.
* `ServiceResponse` — a service's reply: `success`, `message` and the
  optional `order_id`, `payment_id`, `shipping_id`, `status`.

Each has `to_dict()` and a `from_dict(data)` class method for JSON
exchange. Timestamps are written as RFC 3339 strings; a missing timestamp
is written as `0001-01-01T00:00:00Z` and read back as `None`. Empty
optional fields (`error`, `failure_reason`, and the ids and status of a
`ServiceResponse`) are left out of `to_dict()`. `from_dict` raises
`ValueError` when a field has the wrong type or a status is unknown.

```python
from sagaflow.models import CreateOrderRequest, Item

request = CreateOrderRequest(
    customer_id="customer-123",
    items=[Item(id="item-1", name="Product A", price=100.0, quantity=2)],
    amount=200.0,
    address="123 Main St, City, Country",
)
assert CreateOrderRequest.from_dict(request.to_dict()) == request
```

## The scenario client: `sagaflow.scenarios`

`ScenarioClient(base_url="http://localhost:8080", timeout=10.0)` talks to
an orchestrator:

* `create_order(request)` posts the request to `/create-order-saga` and
  returns the `Transaction` from the reply.
* `transaction_status(transaction_id)` gets
  `/transaction-status?transaction_id=...` and returns the `Transaction`.

Both raise `ScenarioError` when the request cannot be sent, the reply is
not valid JSON, or (for `create_order`) the reply does not report success.

`run_scenario(client, title, request, out=None)` creates the order, fetches
its status, writes a report to `out` (standard output by default) and
returns the final transaction, or `None` if a step failed.
`format_transaction(transaction)` renders the report on its own, and
`default_scenarios()` returns the three sample orders: a normal one, one
with a zero amount, and one with no address.

The command runs all three:

```
sagaflow-scenarios [--url URL] [--timeout SECONDS]
```

`--url` defaults to `http://localhost:8080`.

## What this package does not do

It contains no orchestrator server and no order, payment or shipping
service. `sagaflow-scenarios` and `ScenarioClient` need an orchestrator
answering at the given URL that serves `POST /create-order-saga` and
`GET /transaction-status`; without one, every scenario reports an error.

## Tests

```
pip install .[test]
pytest
```