"""
Imihigo Tracker: district performance-contract progress engine

Turns a catalogue of Imihigo indicators (quarterly and annual targets,
grouped into pillars) and the monthly entries submitted against them into
capped per-indicator, per-pillar and district-wide progress scores.

To swap file inputs for a database feed:
    Replace the functions in imihigo_tracker.loaders with queries against
    the submission store. The catalogue only needs indicator and pillar
    records; entries only need indicator_id, quarter_id, month, value,
    sub_values and is_deleted.

To connect to Streamlit:
    Call dashboard.get_pillar_overview(catalogue, entries, quarter_id) for
    the pillar cards and dashboard.get_indicator_progress_table(...) for
    the per-indicator tables (see app.py).

To add new indicators:
    Add a record to data/catalogue.json (or the Indicators sheet of the
    targets workbook) and list its id under a pillar. Composite indicators
    name their children in subIndicatorIds.
"""
