"""
Production Flow Dashboard

Analytics backend turning shop-floor cycle-time exports (Excel/CSV) into
station KPIs, a two-level process graph, issue records and a global
lead-time summary.

To process a file:
    Call pipeline.import_file(path) (async) or feed rows from
    loaders.load_cycle_time_rows() to transforms.process_rows(). Both
    return a models.Snapshot.

To connect a front end:
    dashboard.get_overview(), get_graph_frames(), get_issue_table() and
    get_analytics() return plain dicts and DataFrames for cards, graphs
    and charts (see app.py for the Streamlit version).

To accept new column spellings:
    Add the header text to the matching list in config.FIELD_CANDIDATES.
"""

__version__ = "0.1.0"
