"""attention_report package initializer.

This package contains the data pipeline behind the COVID attention
report.  Modules include source fetching, monthly aggregation, caching,
the preprint text pipeline, plotting helpers and the HTML renderer.
See individual module docstrings for details.
"""
