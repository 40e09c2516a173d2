"""Demo entry point: ships a breadcrumb trail, a message and an exception."""

import argparse
import json
import logging

from alertiqo import Alertiqo, load_config
from alertiqo.schema import ReportValidator


class DryRunTransport:
    """Validates and logs payloads instead of posting them."""

    def __init__(self):
        self._validator = ReportValidator()
        self._logger = logging.getLogger("alertiqo.dry_run")

    def dispatch(self, payload: dict):
        valid, errors = self._validator.validate(payload)
        if not valid:
            self._logger.warning("Report does not match schema: %s", errors)
        self._logger.info("Would send: %s", json.dumps(payload, default=str))

    def close(self):
        pass


def main(argv=None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--dry-run", action="store_true", default=False)
    args, rest = parser.parse_known_args(argv)

    config = load_config(rest)
    transport = DryRunTransport() if args.dry_run else None
    client = Alertiqo(config, transport=transport)
    client.init()
    logger.info(
        "Reporting to %s (environment=%s, dry_run=%s)",
        config.endpoint or "<unset>",
        config.environment,
        args.dry_run,
    )

    try:
        client.add_breadcrumb("Demo started", "lifecycle")
        client.add_breadcrumb("Dividing by zero", "demo", level="debug", data={"numerator": 1})
        client.capture_message("Alertiqo demo message")
        try:
            1 / 0
        except ZeroDivisionError as exc:
            client.capture_exception(exc, {"tags": {"source": "demo"}})
    finally:
        client.close()


if __name__ == "__main__":
    main()
