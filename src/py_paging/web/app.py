"""Flask application factory for the paging simulator web API.

The ``create_app`` function returns a Flask app with two endpoints:

- ``GET /api/status`` — return default options and algorithm names.
- ``POST /api/simulate`` — run one scenario and return JSON summaries.

Request bodies use the same field names as ``CliOptions`` except that
a single ``working_set_size`` replaces the list of sizes.  Unknown
fields, wrong types, and out-of-range values are rejected with
HTTP 400 and an ``error`` message.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from flask import Flask, Response, jsonify, request

from py_paging.cli import CliOptions
from py_paging.errors import ConfigurationError
from py_paging.logging import Logger, LogLevel
from py_paging.memory.policies import AlgorithmType
from py_paging.simulation.experiment import PageReplacementExperiment, compare
from py_paging.workload.generator import WorkloadGenerator

_HTTP_BAD_REQUEST = 400

_INT_FIELDS = (
    "physical_frames",
    "process_count",
    "virtual_pages_per_process",
    "working_set_size",
    "working_set_change_interval",
    "total_cpu_accesses",
    "random_seed",
)
_FLOAT_FIELDS = ("locality_probability", "write_probability")
_DEFAULT_WORKING_SET_SIZE = 3


def _options_from_json(data: dict[str, Any]) -> tuple[CliOptions, int]:
    """Turn a request body into options plus the working-set size.

    Raises:
        ConfigurationError: On unknown fields, wrong types, or bad values.

    """
    unknown = set(data) - set(_INT_FIELDS) - set(_FLOAT_FIELDS)
    if unknown:
        msg = f"Unknown field(s): {', '.join(sorted(unknown))}"
        raise ConfigurationError(msg)
    nulls = sorted(name for name, value in data.items() if value is None)
    if nulls:
        msg = f"Field(s) must not be null: {', '.join(nulls)}"
        raise ConfigurationError(msg)
    for name in _INT_FIELDS:
        value = data.get(name)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            msg = f"'{name}' must be an integer"
            raise ConfigurationError(msg)
    for name in _FLOAT_FIELDS:
        value = data.get(name)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int | float)):
            msg = f"'{name}' must be a number"
            raise ConfigurationError(msg)

    fields = dict(data)
    size = fields.pop("working_set_size", _DEFAULT_WORKING_SET_SIZE)
    options = dataclasses.replace(CliOptions(), working_set_sizes=(size,), **fields)
    options.validate()
    if size <= 0:
        msg = "'working_set_size' must be positive"
        raise ConfigurationError(msg)
    return options, size


def create_app() -> Flask:
    """Create and configure the Flask application.

    Returns:
        A configured Flask application ready to serve.

    """
    app = Flask(__name__)

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return default options and supported algorithms."""
        defaults = dataclasses.asdict(CliOptions())
        defaults.pop("verbose")
        defaults["working_set_size"] = defaults.pop("working_set_sizes")[0]
        return jsonify(
            {
                "algorithms": [algorithm.value for algorithm in AlgorithmType],
                "defaults": defaults,
            }
        )

    @app.route("/api/simulate", methods=["POST"])
    def simulate() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Run one scenario and return the summaries.

        Expects a JSON object body; every field is optional.

        Returns:
            JSON with ``summaries``, ``comparison``, and ``log`` fields.

        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Expected a JSON object body"}), _HTTP_BAD_REQUEST

        try:
            options, size = _options_from_json(data)
        except ConfigurationError as e:
            return jsonify({"error": str(e)}), _HTTP_BAD_REQUEST

        logger = Logger(min_level=LogLevel.INFO)
        trace = WorkloadGenerator(options.to_workload_config(size), logger=logger).generate()
        summaries = PageReplacementExperiment(
            options.to_simulation_config(), logger=logger
        ).run(trace)
        comparison = compare(summaries)

        return jsonify(
            {
                "summaries": {
                    algorithm.value: summary.to_dict() for algorithm, summary in summaries.items()
                },
                "comparison": None
                if comparison is None
                else {
                    "clock_faults": comparison.clock_faults,
                    "random_faults": comparison.random_faults,
                    "delta": comparison.delta,
                    "improvement": comparison.improvement,
                },
                "log": [str(entry) for entry in logger.entries],
            }
        )

    return app


def main() -> None:
    """Run the web API development server.

    This is the ``py-paging-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
