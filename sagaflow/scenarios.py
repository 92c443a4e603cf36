"""Client that drives the orchestrator through the demonstration scenarios."""

from __future__ import annotations

import argparse
import json
import sys
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Protocol, TextIO

from .models import CreateOrderRequest, Item, Transaction

ORCHESTRATOR_URL = "http://localhost:8080"


class ScenarioError(Exception):
    """A scenario request could not be sent, read or understood."""


class ScenarioClient:
    """HTTP client for the saga orchestrator."""

    def __init__(self, base_url: str = ORCHESTRATOR_URL, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _fetch(self, request: urllib.request.Request) -> bytes:
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                return response.read()
        except urllib.error.HTTPError as error:
            with error:
                return error.read()
        except (urllib.error.URLError, OSError) as error:
            raise ScenarioError(f"Error sending request: {error}") from error

    @staticmethod
    def _decode(body: bytes) -> dict[str, Any]:
        raw = body.decode("utf-8", errors="replace")
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("response is not a JSON object")
            data["transaction"] = Transaction.from_dict(data.get("transaction") or {})
        except ValueError as error:
            raise ScenarioError(
                f"Error parsing response: {error}\nRaw response: {raw}"
            ) from error
        return data

    def create_order(self, request: CreateOrderRequest) -> Transaction:
        """Start a saga and return the transaction the orchestrator created."""
        http_request = urllib.request.Request(
            self.base_url + "/create-order-saga",
            data=json.dumps(request.to_dict()).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        data = self._decode(self._fetch(http_request))
        if data.get("success") is not True:
            raise ScenarioError(f"Transaction creation failed: {data.get('message', '')}")
        return data["transaction"]

    def transaction_status(self, transaction_id: str) -> Transaction:
        """Fetch the current state of a transaction."""
        query = urllib.parse.urlencode({"transaction_id": transaction_id})
        http_request = urllib.request.Request(
            f"{self.base_url}/transaction-status?{query}", method="GET"
        )
        return self._decode(self._fetch(http_request))["transaction"]


class _Client(Protocol):
    def create_order(self, request: CreateOrderRequest) -> Transaction: ...

    def transaction_status(self, transaction_id: str) -> Transaction: ...


def format_transaction(transaction: Transaction) -> str:
    """Render a transaction and its steps as a report."""
    lines = [
        "Transaction Details:",
        f"  ID     : {transaction.id}",
        f"  Status : {transaction.status.value}",
    ]
    if transaction.failure_reason:
        lines.append(f"  Failure Reason : {transaction.failure_reason}")
    lines.append("Steps:")
    for step in transaction.steps:
        lines.append(f"  - {step.name}: {step.status.value}")
        if step.error:
            lines.append(f"    Error: {step.error}")
    return "\n".join(lines) + "\n"


def run_scenario(
    client: _Client,
    title: str,
    request: CreateOrderRequest,
    out: TextIO | None = None,
) -> Transaction | None:
    """Run one scenario, report to out, and return the final transaction if fetched."""
    out = sys.stdout if out is None else out
    print(f"=== {title} ===", file=out)
    try:
        created = client.create_order(request)
    except ScenarioError as error:
        print(error, file=out)
        print("Failed to create order", file=out)
        return None
    print(f"Transaction created: {created.id}", file=out)

    print("Waiting for transaction to complete...", file=out)
    try:
        transaction = client.transaction_status(created.id)
    except ScenarioError as error:
        print(error, file=out)
        return None
    out.write(format_transaction(transaction))
    return transaction


def default_scenarios() -> list[tuple[str, CreateOrderRequest]]:
    """The success, payment-failure and shipping-failure scenarios."""
    return [
        (
            "Success Scenario",
            CreateOrderRequest(
                customer_id="customer-123",
                items=[Item("item-1", "Product A", 100.0, 2)],
                amount=200.0,
                address="123 Main St, City, Country",
            ),
        ),
        (
            "Payment Failure Scenario",
            CreateOrderRequest(
                customer_id="customer-456",
                items=[Item("item-2", "Product B", 50.0, 1)],
                amount=0.0,
                address="456 Second St, City, Country",
            ),
        ),
        (
            "Shipping Failure Scenario",
            CreateOrderRequest(
                customer_id="customer-789",
                items=[Item("item-3", "Product C", 150.0, 2)],
                amount=150.0,
                address="",
            ),
        ),
    ]


def main(argv: list[str] | None = None) -> int:
    """Run every default scenario against the orchestrator."""
    parser = argparse.ArgumentParser(prog="sagaflow-scenarios", description=__doc__)
    parser.add_argument("--url", default=ORCHESTRATOR_URL)
    parser.add_argument("--timeout", type=float, default=10.0)
    args = parser.parse_args(argv)

    client = ScenarioClient(args.url, args.timeout)
    for title, request in default_scenarios():
        run_scenario(client, title, request)
    return 0