import logging

from dotenv import load_dotenv
from flask import Flask, jsonify, render_template, request

from dashboard import MutationError, build_dashboard
from models.mutations import SaleInput, SaleValidationError
from utils.file_manager import ensure_defaults

LOG = logging.getLogger(__name__)


def create_app(dashboard=None) -> Flask:
    if dashboard is None:
        load_dotenv()
        ensure_defaults()
        dashboard = build_dashboard()
    app = Flask(__name__)
    app.config["DASHBOARD"] = dashboard

    @app.get("/status")
    def status():
        return jsonify({
            "ok": True,
            "records": len(dashboard.store.records),
            "insights_configured": dashboard.insights is not None,
            "adding": dashboard.is_adding,
            "deleting": dashboard.is_deleting,
        })

    # -------- Dashboard views --------
    @app.get("/api/dashboard")
    def dashboard_view():
        return jsonify({"ok": True, "dashboard": dashboard.view()})

    @app.post("/api/window")
    def window_set():
        data = request.get_json(force=True, silent=True) or {}
        try:
            dashboard.set_window(data.get("window", "all"))
        except ValueError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
        return jsonify({"ok": True, "dashboard": dashboard.view()})

    @app.post("/api/sort")
    def sort_toggle():
        data = request.get_json(force=True, silent=True) or {}
        field = data.get("field")
        if not field:
            return jsonify({"ok": False, "error": "Provide a sort field."}), 400
        try:
            dashboard.toggle_sort(field)
        except ValueError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
        return jsonify({"ok": True, "table": dashboard.table()})

    @app.post("/api/page")
    def page_set():
        data = request.get_json(force=True, silent=True) or {}
        action = data.get("action")
        if action == "next":
            dashboard.next_page()
        elif action == "previous":
            dashboard.previous_page()
        else:
            try:
                dashboard.set_page(int(data.get("page", 1)))
            except (TypeError, ValueError):
                return jsonify({"ok": False, "error": "Provide 'action' (next|previous) or an integer 'page'."}), 400
        return jsonify({"ok": True, "table": dashboard.table()})

    # -------- Sales --------
    @app.get("/api/sales")
    def sales_list():
        return jsonify({"ok": True, "sales": [s.to_dict() for s in dashboard.store.records]})

    @app.post("/api/sales")
    async def sales_add():
        data = request.get_json(force=True, silent=True) or {}
        if dashboard.is_adding:
            return jsonify({"ok": False, "error": "A sale is already being submitted."}), 409
        try:
            sale = await dashboard.add_sale(SaleInput.from_payload(data))
        except SaleValidationError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
        except MutationError as e:
            LOG.error("%s", e)
            return jsonify({"ok": False, "error": str(e)}), 500
        return jsonify({"ok": True, "sale": sale.to_dict()}), 201

    @app.delete("/api/sales/<sale_id>")
    async def sales_delete(sale_id):
        try:
            deleted = await dashboard.delete_sale(sale_id)
        except MutationError as e:
            LOG.error("%s", e)
            return jsonify({"ok": False, "error": str(e)}), 500
        return jsonify({"ok": True, "deleted": deleted, "id": sale_id})

    # -------- Insights --------
    @app.post("/api/insights/refresh")
    async def insights_refresh():
        await dashboard.refresh_insight()
        return jsonify({"ok": not dashboard.insight_error, "insight": dashboard.insight_state()})

    @app.post("/api/insights/ask")
    async def insights_ask():
        data = request.get_json(force=True, silent=True) or {}
        question = (data.get("question") or "").strip()
        if not question:
            return jsonify({"ok": False, "error": "Provide a question."}), 400
        answer = await dashboard.ask(question)
        return jsonify({
            "ok": answer is not None,
            "answer": answer,
            "insight": dashboard.insight_state(),
        })

    # -------- Admin --------
    @app.post("/reset")
    def reset_all():
        dashboard.reset()
        return jsonify({"ok": True, "records": len(dashboard.store.records)})

    @app.get("/")
    def index():
        return render_template("index.html")

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(host="127.0.0.1", port=5000, debug=True)
