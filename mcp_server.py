"""
Local MCP server for the sales insights dashboard.

This implements a small Model Context Protocol (MCP) server using FastMCP.
The tools operate on the same Dashboard state the Flask app uses: they read
the derived views (KPIs, grouped summaries, table pages), add and delete
sales, and ask the insight service questions. Responses are MCP-compliant
content arrays holding one JSON text item.
"""
import json
import logging
from typing import Any, Dict

from dotenv import load_dotenv
from fastmcp import FastMCP

from dashboard import Dashboard, MutationError, build_dashboard
from models.mutations import SaleInput, SaleValidationError
from utils.file_manager import ensure_defaults

LOG = logging.getLogger(__name__)

server_instructions = """
This MCP server exposes a local sales dashboard. It supports reading KPIs,
per-region and per-category summaries, a revenue trend and a sortable,
paginated sales table for a trailing date window, adding and deleting sales,
and asking natural-language questions about the sales data.
"""


def _content(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(payload)}]}


def _parse_arg(arg: str) -> Dict[str, Any]:
    data = json.loads(arg) if arg else {}
    if not isinstance(data, dict):
        raise ValueError("Argument must be a JSON object")
    return data


def create_server(dashboard: Dashboard = None) -> FastMCP:
    if dashboard is None:
        load_dotenv()
        ensure_defaults()
        dashboard = build_dashboard()
    mcp = FastMCP(name="Sales Dashboard Local MCP", instructions=server_instructions)

    @mcp.tool()
    async def dashboard_view() -> Dict[str, Any]:
        """
        Return the full dashboard for the current date window.

        Returns:
            MCP content array with JSON: {"window", "recordCount", "kpis",
            "byRegion", "byCategory", "revenueTrend", "table", "insight", ...}

        Edge cases:
            - An empty window yields zero KPIs and empty groupings, not an error.
        """
        return _content(dashboard.view())

    @mcp.tool()
    async def set_window(window: str = "all") -> Dict[str, Any]:
        """
        Select the trailing date window: "7", "30", "90" (days) or "all".

        Returns the refreshed dashboard, or {"error": ...} for an invalid window.
        """
        try:
            dashboard.set_window(window)
        except ValueError as e:
            return _content({"error": str(e)})
        return _content(dashboard.view())

    @mcp.tool()
    async def sales_table(arg: str = "") -> Dict[str, Any]:
        """
        Return one page of the sorted sales table.

        The `arg` parameter accepts a JSON object with any of:
          - {"sort": "revenue"}  toggle sort on a field (product, customer,
            region, date, revenue, category, unitsSold)
          - {"page": 3}          jump to a page (clamped into range)

        Returns:
            MCP content array with JSON: {"rows": [...], "page", "totalPages", "sort"}
        """
        try:
            data = _parse_arg(arg)
            if data.get("sort"):
                dashboard.toggle_sort(str(data["sort"]))
            if data.get("page") is not None:
                dashboard.set_page(int(data["page"]))
        except (ValueError, TypeError) as e:
            return _content({"error": str(e)})
        return _content(dashboard.table())

    @mcp.tool()
    async def add_sale(arg: str) -> Dict[str, Any]:
        """
        Add a sale record.

        The `arg` parameter is a JSON object like
        {"category": "Phones", "product": "SmartX Phone", "region": "Riyadh",
         "customerName": "Sara", "unitsSold": 2, "price": 50, "date": "2025-01-31"}

        Revenue is unitsSold x price, rounded to cents. `date` defaults to today.

        Returns:
            MCP content array with {"sale": {...}} or {"error": "..."}.
        """
        try:
            sale = await dashboard.add_sale(SaleInput.from_payload(_parse_arg(arg)))
        except (ValueError, MutationError) as e:
            # SaleValidationError is a ValueError
            return _content({"error": str(e)})
        return _content({"sale": sale.to_dict()})

    @mcp.tool()
    async def delete_sale(sale_id: str) -> Dict[str, Any]:
        """
        Delete a sale by id.

        Deleting an id that does not exist is not an error: the result is
        {"deleted": false}.
        """
        try:
            deleted = await dashboard.delete_sale(sale_id)
        except MutationError as e:
            return _content({"error": str(e)})
        return _content({"deleted": deleted, "id": sale_id})

    @mcp.tool()
    async def refresh_insight() -> Dict[str, Any]:
        """
        Generate a fresh natural-language summary of the sales data.

        Returns the insight panel state: {"text", "error", "transcript", ...}.
        A failing language-model call shows up in `error`; it is never raised.
        """
        await dashboard.refresh_insight()
        return _content(dashboard.insight_state())

    @mcp.tool()
    async def ask_insight(question: str) -> Dict[str, Any]:
        """
        Ask a free-text question about the sales data.

        Returns:
            MCP content array with {"answer": str | null, "insight": {...}}.
        """
        if not question or not question.strip():
            return _content({"error": "Provide a question"})
        answer = await dashboard.ask(question)
        return _content({"answer": answer, "insight": dashboard.insight_state()})

    return mcp


def main():
    logging.basicConfig(level=logging.INFO)
    server = create_server()
    LOG.info("Starting local MCP server on 127.0.0.1:8000 (HTTP)")
    server.run(transport="http", host="127.0.0.1", port=8000, path="/mcp")


if __name__ == "__main__":
    main()
