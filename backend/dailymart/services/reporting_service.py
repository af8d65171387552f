# Overview: Service-layer operations for reporting; read-only projections over committed sales.

"""
Reports are recomputed on every call from committed rows; nothing here is
cached or materialized, and nothing here writes.

Calendar semantics: sales.sale_date is local wall-clock time, so "a day"
is the shop's calendar day, with inclusive [00:00, next 00:00) bounds.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from sqlalchemy import func

from dailymart.extensions import db
from dailymart.errors import ValidationError
from dailymart.models import Product, Sale, SaleItem
from dailymart.services.sales_service import items_count_subquery
from dailymart.time_utils import local_today, parse_iso_date, parse_year_month

# Ten years of trailing history is the widest window a report accepts
MAX_REPORT_DAYS = 3650


def _parse_date(value, name: str) -> date:
    try:
        parsed = parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be a YYYY-MM-DD date")
    if parsed is None:
        raise ValidationError(f"{name} is required")
    return parsed


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _summarize(lo: datetime, hi: datetime) -> dict:
    row = db.session.query(
        func.count(Sale.id).label("total_bills"),
        func.coalesce(func.sum(Sale.total_amount_cents), 0).label("gross"),
        func.coalesce(func.sum(Sale.discount_amount_cents), 0).label("discount"),
        func.coalesce(func.sum(Sale.final_amount_cents), 0).label("net"),
    ).filter(Sale.sale_date >= lo, Sale.sale_date < hi).one()

    total_bills = int(row.total_bills or 0)
    net = int(row.net or 0)
    return {
        "total_bills": total_bills,
        "gross_sales_cents": int(row.gross or 0),
        "total_discount_cents": int(row.discount or 0),
        "net_sales_cents": net,
        # nearest-cent rounding (half-up)
        "avg_bill_value_cents": (net + total_bills // 2) // total_bills if total_bills else 0,
    }


def daily_sales_report(day=None) -> dict:
    """Summary plus the day's bills (newest first) for one local calendar date."""
    day = _parse_date(day, "date") if day is not None else local_today()
    lo, hi = _day_start(day), _day_start(day + timedelta(days=1))

    counts = items_count_subquery()
    rows = (
        db.session.query(Sale, func.coalesce(counts.c.items_count, 0))
        .outerjoin(counts, counts.c.sale_id == Sale.id)
        .filter(Sale.sale_date >= lo, Sale.sale_date < hi)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )

    return {
        "date": day.isoformat(),
        "summary": _summarize(lo, hi),
        "sales": [sale.to_dict(items_count=int(count)) for sale, count in rows],
    }


def monthly_sales_report(year_month: str | None = None) -> dict:
    """Same aggregates as the daily summary, scoped to "YYYY-MM"."""
    if year_month is None:
        today = local_today()
        year, month = today.year, today.month
    else:
        try:
            parsed = parse_year_month(year_month)
        except ValueError:
            raise ValidationError("month must be YYYY-MM")
        if parsed is None:
            raise ValidationError("month must be YYYY-MM")
        year, month = parsed

    try:
        first = date(year, month, 1)
        following = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    except ValueError:
        raise ValidationError("month is out of range", details={"month": year_month})

    return {
        "month": f"{year:04d}-{month:02d}",
        "summary": _summarize(_day_start(first), _day_start(following)),
    }


def profit_report(start, end=None) -> dict:
    """
    Revenue, cost and margin over [start, end] (local dates, inclusive).

    COST APPROXIMATION: cost uses each product's CURRENT buy price, not the
    price paid when the item was sold. Repricing a product's buy price
    rewrites historical profit figures.
    """
    start_d = _parse_date(start, "start")
    end_d = _parse_date(end, "end") if end is not None else local_today()
    if end_d < start_d:
        raise ValidationError("end date is before start date")

    row = db.session.query(
        func.coalesce(func.sum(SaleItem.total_price_cents), 0).label("revenue"),
        func.coalesce(func.sum(SaleItem.quantity * Product.buy_price_cents), 0).label("cost"),
        func.coalesce(func.sum(SaleItem.quantity), 0).label("units"),
    ).join(Sale, SaleItem.sale_id == Sale.id).join(
        Product, SaleItem.product_id == Product.id
    ).filter(
        Sale.sale_date >= _day_start(start_d),
        Sale.sale_date < _day_start(end_d + timedelta(days=1)),
    ).one()

    revenue_cents = int(row.revenue or 0)
    cost_cents = int(row.cost or 0)
    profit_cents = revenue_cents - cost_cents
    margin_pct = (profit_cents / revenue_cents * 100.0) if revenue_cents else None

    return {
        "start": start_d.isoformat(),
        "end": end_d.isoformat(),
        "units_sold": int(row.units or 0),
        "revenue_cents": revenue_cents,
        "cost_cents": cost_cents,
        "gross_profit_cents": profit_cents,
        "margin_pct": round(margin_pct, 2) if margin_pct is not None else None,
    }


def top_selling_products(days: int = 30, limit: int = 10) -> dict:
    """
    Best sellers since `days` days before today, today included
    (so days=30 spans 31 calendar dates).

    Ranked by units sold, ties broken by revenue (both descending).
    """
    if days <= 0:
        raise ValidationError("days must be > 0")
    if days > MAX_REPORT_DAYS:
        raise ValidationError(f"days cannot exceed {MAX_REPORT_DAYS}")
    if limit <= 0:
        raise ValidationError("limit must be > 0")

    today = local_today()
    since = today - timedelta(days=days)

    units = func.sum(SaleItem.quantity)
    revenue = func.sum(SaleItem.total_price_cents)

    rows = db.session.query(
        Product.id.label("product_id"),
        Product.barcode.label("barcode"),
        Product.name.label("name"),
        Product.category.label("category"),
        func.count(func.distinct(SaleItem.sale_id)).label("times_sold"),
        units.label("units_sold"),
        revenue.label("revenue_cents"),
        func.sum(SaleItem.quantity * Product.buy_price_cents).label("cost_cents"),
    ).join(SaleItem, SaleItem.product_id == Product.id).join(
        Sale, SaleItem.sale_id == Sale.id
    ).filter(
        Sale.sale_date >= _day_start(since),
        Sale.sale_date < _day_start(today + timedelta(days=1)),
    ).group_by(
        Product.id, Product.barcode, Product.name, Product.category
    ).order_by(
        units.desc(), revenue.desc(), Product.id.asc()
    ).limit(limit).all()

    return {
        "days": days,
        "since": since.isoformat(),
        "rows": [
            {
                "product_id": row.product_id,
                "barcode": row.barcode,
                "name": row.name,
                "category": row.category,
                "times_sold": int(row.times_sold or 0),
                "units_sold": int(row.units_sold or 0),
                "revenue_cents": int(row.revenue_cents or 0),
                "profit_cents": int(row.revenue_cents or 0) - int(row.cost_cents or 0),
            }
            for row in rows
        ],
    }


def stock_value_report() -> dict:
    row = db.session.query(
        func.count(Product.id).label("products"),
        func.coalesce(func.sum(Product.quantity), 0).label("units"),
        func.coalesce(func.sum(Product.quantity * Product.buy_price_cents), 0).label("investment"),
        func.coalesce(func.sum(Product.quantity * Product.sell_price_cents), 0).label("potential_revenue"),
    ).one()

    investment = int(row.investment or 0)
    potential_revenue = int(row.potential_revenue or 0)
    return {
        "total_products": int(row.products or 0),
        "total_units": int(row.units or 0),
        "total_investment_cents": investment,
        "potential_revenue_cents": potential_revenue,
        "potential_profit_cents": potential_revenue - investment,
    }


def dashboard_stats() -> dict:
    """Headline numbers for the home screen."""
    today = local_today()
    stock = stock_value_report()

    low_stock_count = db.session.query(func.count(Product.id)).filter(
        Product.is_active.is_(True),
        Product.quantity < Product.low_stock_threshold,
    ).scalar() or 0

    today_summary = _summarize(_day_start(today), _day_start(today + timedelta(days=1)))

    return {
        "date": today.isoformat(),
        "total_products": stock["total_products"],
        "total_units": stock["total_units"],
        "low_stock_count": int(low_stock_count),
        "today_bills": today_summary["total_bills"],
        "today_net_sales_cents": today_summary["net_sales_cents"],
        "inventory_cost_cents": stock["total_investment_cents"],
        # margin still locked up in stock on hand
        "inventory_value_cents": stock["potential_profit_cents"],
    }
