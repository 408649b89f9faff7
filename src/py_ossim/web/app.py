"""Flask application factory for the simulator's HTTP API.

The ``create_app`` function returns a Flask app with two endpoints:

- ``GET /api/defaults`` — the default configuration as JSON.
- ``POST /api/simulate`` — run a trace and return the results as JSON.

The simulate body mirrors the CLI inputs, already parsed::

    {
        "trace": ["CPU,10", "SYSCALL,0"],
        "vectors": ["0X01E3", ...],
        "delays": [5, ...],
        "external_files": [["program1", 10], ...],
        "config": {...}            # optional SimulationConfig overrides
    }

Every request boots its own kernel, so requests never share state.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, request

from py_ossim.catalog import Catalog
from py_ossim.config import SimulationConfig
from py_ossim.engine import simulate
from py_ossim.report import execution_lines, status_lines

_HTTP_BAD_REQUEST = 400
_REQUIRED_FIELDS = ("trace", "vectors", "delays", "external_files")


def create_app() -> Flask:
    """Create and configure the Flask application.

    Returns:
        A configured Flask application ready to serve.

    """
    app = Flask(__name__)

    @app.route("/api/defaults")
    def defaults() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the default configuration."""
        return jsonify(SimulationConfig().to_dict())

    @app.route("/api/simulate", methods=["POST"])
    def run_simulation() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Run a trace and return events, final state and status snapshots.

        Returns:
            JSON with ``events``, ``execution``, ``status``, ``partitions``
            and ``processes`` fields, or an ``error`` with status 400.

        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Expected a JSON object"}), _HTTP_BAD_REQUEST
        missing = [name for name in _REQUIRED_FIELDS if name not in data]
        if missing:
            return jsonify({"error": f"Missing field(s): {', '.join(missing)}"}), _HTTP_BAD_REQUEST

        try:
            config = SimulationConfig.from_dict(data.get("config") or {})
            catalog = Catalog.from_pairs((str(name), int(size)) for name, size in data["external_files"])
            vectors = [str(v) for v in data["vectors"]]
            delays = [int(d) for d in data["delays"]]
            trace = [str(line) for line in data["trace"]]
            kernel = simulate(trace, vectors=vectors, delays=delays, catalog=catalog, config=config)
        except (KeyError, TypeError, ValueError) as e:
            return jsonify({"error": f"Invalid input: {e}"}), _HTTP_BAD_REQUEST

        return jsonify(
            {
                "events": [
                    {"time": e.time, "duration": e.duration, "description": e.description}
                    for e in kernel.trace
                ],
                "execution": execution_lines(kernel),
                "status": status_lines(kernel.snapshots),
                "partitions": [
                    {"id": p.id, "size": p.capacity_mb, "code": p.occupant}
                    for p in kernel.partition_snapshot()
                ],
                "processes": [
                    {
                        "pid": p.pid,
                        "parent": p.parent_pid,
                        "program": p.program_name,
                        "partition": p.partition_id,
                        "size": p.size_mb,
                        "state": str(p.state),
                        "priority": p.priority,
                    }
                    for p in kernel.process_snapshot()
                ],
                "ready_queue": kernel.scheduler.ready_queue,
            }
        )

    return app


def main() -> None:
    """Run the HTTP API development server.

    This is the ``py-ossim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
