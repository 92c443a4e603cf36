import io
import json
import socket
import threading
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from sagaflow.models import CreateOrderRequest, Item, Step, Transaction, TransactionStatus
from sagaflow.scenarios import (
    ScenarioClient,
    ScenarioError,
    default_scenarios,
    format_transaction,
    main,
    run_scenario,
)


def _failed_transaction():
    return Transaction(
        id="TRX-1",
        customer_id="customer-123",
        amount=200.0,
        address="123 Main St, City, Country",
        status=TransactionStatus.FAILED,
        failure_reason="Failed to process payment: Payment failed intentionally",
        steps=[
            Step("CREATE_ORDER", TransactionStatus.COMPLETED),
            Step("PROCESS_PAYMENT", TransactionStatus.FAILED, error="Payment failed intentionally"),
            Step("CANCEL_ORDER", TransactionStatus.COMPLETED),
        ],
    )


@pytest.fixture
def orchestrator():
    """A fake orchestrator whose replies the test sets in `routes`."""
    state = {"routes": {}, "requests": []}

    class Handler(BaseHTTPRequestHandler):
        def _reply(self, method):
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length else b""
            parsed = urllib.parse.urlsplit(self.path)
            state["requests"].append((method, parsed.path, parsed.query, body))
            code, content_type, payload = state["routes"][(method, parsed.path)]
            self.send_response(code)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def do_GET(self):
            self._reply("GET")

        def do_POST(self):
            self._reply("POST")

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    state["url"] = f"http://127.0.0.1:{server.server_address[1]}"
    yield state
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


def _json(data):
    return json.dumps(data).encode()


class FakeClient:
    def __init__(self, created=None, status=None, create_error=None, status_error=None):
        self.created = created
        self.status = status
        self.create_error = create_error
        self.status_error = status_error
        self.asked = []

    def create_order(self, request):
        if self.create_error:
            raise self.create_error
        return self.created

    def transaction_status(self, transaction_id):
        self.asked.append(transaction_id)
        if self.status_error:
            raise self.status_error
        return self.status


def test_format_transaction_lists_steps_and_errors():
    report = format_transaction(_failed_transaction())
    lines = report.splitlines()
    assert lines[0] == "Transaction Details:"
    assert lines[1] == "  ID     : TRX-1"
    assert lines[2] == "  Status : FAILED"
    assert lines[3] == "  Failure Reason : Failed to process payment: Payment failed intentionally"
    assert lines[4] == "Steps:"
    assert "  - PROCESS_PAYMENT: FAILED" in lines
    assert "    Error: Payment failed intentionally" in lines
    assert report.endswith("\n")


def test_format_transaction_without_failure_reason():
    report = format_transaction(Transaction(id="TRX-2", status=TransactionStatus.COMPLETED))
    assert "Failure Reason" not in report
    assert report.splitlines()[-1] == "Steps:"


def test_default_scenarios_match_expected_requests():
    scenarios = dict(default_scenarios())
    assert list(scenarios) == [
        "Success Scenario",
        "Payment Failure Scenario",
        "Shipping Failure Scenario",
    ]
    assert scenarios["Success Scenario"].items == [Item("item-1", "Product A", 100.0, 2)]
    assert scenarios["Payment Failure Scenario"].amount == 0.0
    assert scenarios["Shipping Failure Scenario"].address == ""


def test_run_scenario_reports_final_transaction():
    final = _failed_transaction()
    client = FakeClient(created=Transaction(id="TRX-1"), status=final)
    out = io.StringIO()
    result = run_scenario(client, "Success Scenario", default_scenarios()[0][1], out)
    assert result == final
    assert client.asked == ["TRX-1"]
    text = out.getvalue()
    assert "Transaction created: TRX-1" in text
    assert "Waiting for transaction to complete..." in text
    assert text.endswith(format_transaction(final))


def test_run_scenario_reports_creation_failure():
    client = FakeClient(create_error=ScenarioError("Transaction creation failed: nope"))
    out = io.StringIO()
    assert run_scenario(client, "Payment Failure Scenario", CreateOrderRequest(), out) is None
    assert client.asked == []
    assert out.getvalue().splitlines()[-1] == "Failed to create order"


def test_run_scenario_reports_status_failure():
    client = FakeClient(
        created=Transaction(id="TRX-3"), status_error=ScenarioError("Error sending request: down")
    )
    out = io.StringIO()
    assert run_scenario(client, "Shipping Failure Scenario", CreateOrderRequest(), out) is None
    assert "Error sending request: down" in out.getvalue()
    assert "Transaction Details:" not in out.getvalue()


def test_client_create_order_posts_request(orchestrator):
    pending = Transaction(id="TRX-1", customer_id="customer-123", amount=200.0)
    orchestrator["routes"][("POST", "/create-order-saga")] = (
        202,
        "application/json",
        _json({"success": True, "message": "Transaction initiated successfully",
               "transaction": pending.to_dict()}),
    )
    request = default_scenarios()[0][1]
    created = ScenarioClient(orchestrator["url"]).create_order(request)
    assert created == pending
    method, path, _, body = orchestrator["requests"][0]
    assert (method, path) == ("POST", "/create-order-saga")
    assert CreateOrderRequest.from_dict(json.loads(body)) == request


def test_client_create_order_bad_request_is_parse_error(orchestrator):
    orchestrator["routes"][("POST", "/create-order-saga")] = (
        400,
        "text/plain; charset=utf-8",
        b"Amount must be greater than zero\n",
    )
    with pytest.raises(ScenarioError) as info:
        ScenarioClient(orchestrator["url"]).create_order(default_scenarios()[1][1])
    assert "Error parsing response" in str(info.value)
    assert "Raw response: Amount must be greater than zero" in str(info.value)


def test_client_create_order_unsuccessful_reply(orchestrator):
    orchestrator["routes"][("POST", "/create-order-saga")] = (
        200,
        "application/json",
        _json({"success": False, "message": "busy"}),
    )
    with pytest.raises(ScenarioError, match="Transaction creation failed: busy"):
        ScenarioClient(orchestrator["url"]).create_order(CreateOrderRequest())


def test_client_transaction_status_sends_id(orchestrator):
    final = _failed_transaction()
    orchestrator["routes"][("GET", "/transaction-status")] = (
        200,
        "application/json",
        _json({"success": True, "message": "", "transaction": final.to_dict()}),
    )
    result = ScenarioClient(orchestrator["url"]).transaction_status("TRX-1")
    assert result == final
    _, _, query, _ = orchestrator["requests"][0]
    assert urllib.parse.parse_qs(query) == {"transaction_id": ["TRX-1"]}


def test_client_connection_refused_raises():
    with socket.socket() as probe:
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]
    client = ScenarioClient(f"http://127.0.0.1:{port}", timeout=2)
    with pytest.raises(ScenarioError, match="Error sending request"):
        client.transaction_status("TRX-1")


def test_main_runs_all_scenarios(orchestrator, capsys):
    orchestrator["routes"][("POST", "/create-order-saga")] = (
        202,
        "application/json",
        _json({"success": True, "message": "ok", "transaction": {"id": "TRX-1"}}),
    )
    orchestrator["routes"][("GET", "/transaction-status")] = (
        200,
        "application/json",
        _json({"success": True, "transaction": _failed_transaction().to_dict()}),
    )
    assert main(["--url", orchestrator["url"], "--timeout", "5"]) == 0
    posts = [r for r in orchestrator["requests"] if r[0] == "POST"]
    assert len(posts) == len(default_scenarios())
    assert capsys.readouterr().out.count("Transaction Details:") == len(default_scenarios())