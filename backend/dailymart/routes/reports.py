from flask import Blueprint, jsonify, request

from dailymart.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/daily")
def daily_report():
    report = reporting_service.daily_sales_report(request.args.get("date"))
    return jsonify(report), 200


@reports_bp.get("/monthly")
def monthly_report():
    report = reporting_service.monthly_sales_report(request.args.get("month"))
    return jsonify(report), 200


@reports_bp.get("/profit")
def profit_report():
    start = request.args.get("start")
    if not start:
        return jsonify({"error": "start is required", "kind": "ValidationError", "details": {}}), 400

    report = reporting_service.profit_report(start, request.args.get("end"))
    return jsonify(report), 200


@reports_bp.get("/top-selling")
def top_selling_report():
    days = request.args.get("days", 30, type=int)
    limit = request.args.get("limit", 10, type=int)
    report = reporting_service.top_selling_products(days=days, limit=limit)
    return jsonify(report), 200


@reports_bp.get("/stock-value")
def stock_value_report():
    return jsonify(reporting_service.stock_value_report()), 200


@reports_bp.get("/dashboard")
def dashboard():
    return jsonify(reporting_service.dashboard_stats()), 200
