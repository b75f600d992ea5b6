from __future__ import annotations

import logging
import os
import time

import flask
import flask_socketio

from x11parity.configurations.simulation_config import SimulationConfig
from x11parity.oracle import compare, export, observed
from x11parity.protocol.errors import TraceFormatError, X11ParityError
from x11parity.server import scenarios
from x11parity.server.session import Session


def setup_logger(name, log_file, level=logging.INFO):
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler = logging.FileHandler(log_file)
    handler.setFormatter(formatter)

    # Console handler shares the file format
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.addHandler(handler)
    logger.addHandler(console_handler)
    logger.propagate = False

    return logger


logger = logging.getLogger(__name__)

CONFIG = SimulationConfig()

# The session whose operation log is the reference trace. Replaced by each
# simulation run; None until the first run starts.
SESSION: Session | None = None

#######################
# Flask Configuration #
#######################

app = flask.Flask(__name__)
app.config["SECRET_KEY"] = "secret!"

app.config["DEBUG"] = os.getenv("FLASK_ENV", "production") == "development"

# The simulator blocks on socket reads in plain threads, so Socket.IO runs
# in threading mode rather than under a green-thread hub.
socketio = flask_socketio.SocketIO(
    app,
    async_mode="threading",
    cors_allowed_origins="*",
    logger=app.config["DEBUG"],
)

#######################
# Flask Configuration #
#######################


def _reference_operations() -> list:
    if SESSION is None:
        return []
    return SESSION.operations.snapshot()


def _run_oracle(payload) -> compare.OracleResult:
    """Compare a client's trace against the current reference.

    :raises TraceFormatError: If the payload is malformed.
    """
    records = payload.get("operations") if isinstance(payload, dict) else payload
    if records is None:
        raise TraceFormatError("request carries no operations")
    observed_ops = observed.parse_observed_trace(records)
    result = compare.compare_operations(_reference_operations(), observed_ops)

    if CONFIG.output_dir is not None and not result.passed:
        filename = os.path.join(
            CONFIG.output_dir, f"discrepancies_{int(time.time())}.csv"
        )
        export.write_discrepancy_report(result, filename)
    return result


@app.route("/operations", methods=["GET"])
def get_operations():
    """Reference trace in the same record shape the client publishes."""
    operations = _reference_operations()
    return flask.jsonify(
        {
            "operations": [op.to_dict() for op in operations],
            "count": len(operations),
            "done": SESSION is not None and SESSION.done.is_set(),
            "findings": []
            if SESSION is None
            else [f.to_dict() for f in SESSION.reporter.findings],
        }
    )


@app.route("/reset", methods=["POST"])
def reset_operations():
    if SESSION is not None:
        SESSION.clear()
    logger.info("Reference trace reset")
    return flask.jsonify({"status": "ok"})


@app.route("/compare", methods=["POST"])
def compare_trace():
    payload = flask.request.get_json(silent=True)
    if payload is None:
        return flask.jsonify({"error": "expected a JSON body"}), 400
    try:
        result = _run_oracle(payload)
    except TraceFormatError as e:
        logger.error(f"Rejected observed trace: {e}")
        return flask.jsonify({"error": str(e)}), 400
    return flask.jsonify(result.to_dict())


@socketio.on("canvas_operations")
def on_canvas_operations(data):
    """The client pushes its trace once it has drawn everything."""
    try:
        result = _run_oracle(data)
    except TraceFormatError as e:
        logger.error(f"Rejected observed trace: {e}")
        flask_socketio.emit("parity_result", {"passed": False, "error": str(e)})
        return
    flask_socketio.emit("parity_result", result.to_dict())


def simulate(config: SimulationConfig) -> bool:
    """Connect to the configured display and run every scenario.

    The finished trace stays available as the reference until the next run.
    """
    global SESSION
    try:
        session = Session.connect(config)
    except X11ParityError as e:
        logger.error(f"Could not reach X display {config.display_host}:{config.display_number}: {e}")
        return False

    SESSION = session
    completed = scenarios.run_simulation(session)

    if config.output_dir is not None:
        os.makedirs(config.output_dir, exist_ok=True)
        session.operations.dump_msgpack(os.path.join(config.output_dir, "reference.msgpack"))
    return completed


def run(config):
    global CONFIG, logger
    CONFIG = config.output()
    logger = setup_logger("x11parity", config.log_file, level=config.log_level)

    socketio.start_background_task(simulate, CONFIG)

    host = config.host if config.host is not None else "0.0.0.0"
    print("\n" + "=" * 70)
    print("x11parity trace server")
    print("=" * 70)
    print(f"  X display: {config.display_host}:{config.display_number} (port {config.display_port})")
    print(f"  Traces:    http://localhost:{config.port}/operations")
    print("=" * 70 + "\n")

    socketio.run(
        app,
        host=host,
        port=config.port,
        log_output=app.config["DEBUG"],
        allow_unsafe_werkzeug=True,
    )
