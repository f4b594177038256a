"""Basic example: logs, an alert and metrics from a plain script.

Run with:
    VIGILANT_TOKEN=... python examples/basic_example.py

Without a token the agent runs in noop mode and only prints to the console.
"""

import logging
import os
import random
import time

import vigilant
from vigilant.adapters.logging import VigilantHandler


def main() -> None:
    token = os.environ.get("VIGILANT_TOKEN", "")
    builder = (
        vigilant.ConfigBuilder()
        .with_name("basic-example")
        .with_token(token or "local")
        .with_passthrough()
        .with_attributes({"env": "dev"})
    )
    if not token:
        builder = builder.with_noop()
    vigilant.init(builder.build())

    # Forward stdlib logging as well
    logging.getLogger().addHandler(VigilantHandler())
    logging.getLogger().setLevel(logging.INFO)

    vigilant.log_info("example started", {"pid": str(os.getpid())})

    for i in range(5):
        latency = random.uniform(0.01, 0.2)
        vigilant.metric_counter("jobs_processed", 1, {"queue": "default"})
        vigilant.metric_histogram("job_duration_seconds", latency, {"queue": "default"})
        vigilant.metric_gauge("queue_depth", 5 - i)
        logging.getLogger("worker").info("processed job %d", i)
        time.sleep(latency)

    vigilant.create_alert("example finished", {"jobs": "5"})
    vigilant.shutdown()


if __name__ == "__main__":
    main()
