import asyncio
import json

from fastmcp import Client

from dashboard import Dashboard
from mcp_server import create_server
from models.store import RecordStore
from tests.conftest import TODAY, FakeInsights, MemoryStorage, make_sale, no_delay


def _server():
    store = RecordStore(MemoryStorage(rows=[make_sale(i, TODAY).to_dict() for i in "abc"]))
    store.load()
    dash = Dashboard(store, insights=FakeInsights(), delay=no_delay, today=TODAY)
    return create_server(dash), dash


def _payload(result):
    # tools return an MCP content array; unwrap to the JSON text item
    data = json.loads(result.content[0].text)
    if isinstance(data, dict) and "content" in data:
        data = json.loads(data["content"][0]["text"])
    return data


def _call(server, tool, args=None):
    async def run():
        async with Client(server) as client:
            return await client.call_tool(tool, args or {})
    return _payload(asyncio.run(run()))


def test_dashboard_tool():
    server, _ = _server()
    data = _call(server, "dashboard_view")
    assert data["recordCount"] == 3


def test_add_and_delete_tools():
    server, dash = _server()
    arg = json.dumps({"category": "Audio", "product": "Buds", "region": "Jeddah",
                      "customerName": "Noura", "unitsSold": 2, "price": 50, "date": TODAY.isoformat()})
    assert _call(server, "add_sale", {"arg": arg})["sale"]["revenue"] == 100.0
    assert len(dash.store.records) == 4
    assert _call(server, "delete_sale", {"sale_id": "a"})["deleted"] is True
    assert _call(server, "delete_sale", {"sale_id": "a"})["deleted"] is False
    assert "error" in _call(server, "add_sale", {"arg": json.dumps({"unitsSold": 0})})
    too_large = json.loads(arg)
    too_large.update(unitsSold=10, price="1e27")
    assert _call(server, "add_sale", {"arg": json.dumps(too_large)})["error"] == "Price is too large."
    assert len(dash.store.records) == 3


def test_table_and_insight_tools():
    server, _ = _server()
    table = _call(server, "sales_table", {"arg": json.dumps({"sort": "product", "page": 9})})
    assert table["sort"] == {"field": "product", "direction": "ascending"}
    assert table["page"] == 1
    answer = _call(server, "ask_insight", {"question": "top product?"})
    assert answer["answer"] == "Riyadh sells most."
