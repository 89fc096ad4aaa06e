from __future__ import annotations

import argparse
import logging
import time
from typing import List, Optional

from hydroalert.bootstrap import build_monitor_system, watch_log
from hydroalert.core.config.yaml_config import load_app_config
from hydroalert.views.status_rows import current_status_lines

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Hydroponic parameter alert monitor")
    p.add_argument("--config", default=None, help="path to config.yaml")
    p.add_argument("--status-interval", type=float, default=30.0, help="seconds between status log lines")
    p.add_argument("--log-level", default=None, help="override logging.level from config")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Start the runtime threads and log the current status periodically.

    Usage:
        python -m hydroalert.dev.run_monitor --config path/to/config.yaml
    """
    args = parse_args(argv)
    cfg = load_app_config(args.config)

    logging.basicConfig(
        level=(args.log_level or cfg.logging.level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    wiring = build_monitor_system(cfg=cfg)
    logger.info(
        "Monitoring %s via %s sink, readings from %s:%d",
        ", ".join(wiring.engine.thresholds.parameters()),
        cfg.log_sink.kind,
        cfg.transport.host,
        cfg.transport.port,
    )

    unwatch = watch_log(
        wiring.sink,
        lambda e: logger.info("LOG %s: %s %s", e.id, e.status.value.upper(), ", ".join(e.parameters)),
    )

    wiring.runtime.start()
    try:
        while True:
            time.sleep(args.status_interval)
            for line in current_status_lines(wiring.engine.active_alerts()):
                logger.info("STATUS: %s", line)
    except KeyboardInterrupt:
        logger.info("Stopping monitor")
    finally:
        wiring.runtime.stop()
        if unwatch is not None:
            unwatch()


if __name__ == "__main__":
    main()
