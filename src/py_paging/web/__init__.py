"""JSON web API for the paging simulator.

This package provides a Flask application that runs paging experiments
over HTTP.  It is an **optional** extra — install with::

    pip install py-paging[web]

The ``create_app`` factory in ``app.py`` serves two endpoints:

- ``GET /api/status`` — defaults and supported algorithms.
- ``POST /api/simulate`` — generate a trace, run every algorithm, and
  return the summaries as JSON.
"""
