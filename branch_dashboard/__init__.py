"""
Branch Dashboard — Scope-aware metrics aggregation engine

Analytics backend for a branch and staff performance dashboard: resolves
what each user may see, filters and aggregates daily achievement, target
and projection records, and derives the KPIs shown on the dashboard,
analytics, target and projection pages.

To swap the data source:
    Build the record fact table with transforms.build_fact_records (typed
    Record snapshots from a database) or transforms.build_fact_achievement
    (a parsed wide upload). Every downstream function consumes that one
    schema.

To connect a front end:
    Call dashboard.get_dashboard_overview(user, staff, branches, records,
    today) to get a plain dict suitable for rendering cards, daily charts
    and product progress tables.

To add a new product:
    Add its amount and account metric names to config.METRIC_REGISTRY with
    their category. Grand totals pick up new constituents automatically.
"""
