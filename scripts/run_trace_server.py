#!/usr/bin/env python3
"""
Run the simulator against an X display and serve the reference trace.

Usage:
    python scripts/run_trace_server.py --display-host 127.0.0.1 --display 1
    python scripts/run_trace_server.py --display 1 --port 8000 --output-dir traces/
"""

import argparse
import logging

from x11parity.configurations import simulation_config
from x11parity.server import app

if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--display-host", type=str, default="127.0.0.1", help="Host of the X display"
    )
    parser.add_argument(
        "--display", type=int, default=0, help="X display number (TCP port 6000 + n)"
    )
    parser.add_argument(
        "--port", type=int, default=8000, help="Port the trace server listens on"
    )
    parser.add_argument(
        "--reply-timeout", type=float, default=5.0, help="Seconds to wait for each reply"
    )
    parser.add_argument(
        "--idle", type=float, default=2.0, help="Seconds to keep the channel open after the scenarios"
    )
    parser.add_argument(
        "--output-dir", type=str, default=None, help="Directory for reference.msgpack and reports"
    )
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    config = (
        simulation_config.SimulationConfig()
        .display(host=args.display_host, display_number=args.display)
        .timeouts(reply_timeout_s=args.reply_timeout, idle_period_s=args.idle)
        .hosting(port=args.port, host="0.0.0.0")
        .logging(level=logging.DEBUG if args.debug else logging.INFO)
        .output(args.output_dir)
    )

    app.run(config)
