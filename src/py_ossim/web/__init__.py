"""HTTP API for the simulator.

This package provides a Flask application that runs traces submitted as
JSON.  It is an **optional** extra — install with::

    pip install py-ossim[web]

The ``create_app`` factory in ``app.py`` serves two endpoints:

- ``GET /api/defaults`` — the default configuration.
- ``POST /api/simulate`` — run a trace and return the results.
"""
