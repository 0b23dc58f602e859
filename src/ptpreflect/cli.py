"""CLI for the PTP domain reflector."""
import argparse
import logging

from .config import ConfigError, LOG_LEVELS, load_config
from .reflector import ReflectorEngine

logger = logging.getLogger("ptpreflect")


def main(argv=None):
    p = argparse.ArgumentParser(prog="ptp-reflector",
                                description="Reflect PTP multicast traffic between domain 0 and domain 1")
    p.add_argument("--config", help="YAML config file")
    p.add_argument("--log-level", choices=LOG_LEVELS, type=str.upper, default=None)
    p.add_argument("--multicast-loop", action="store_true", default=None,
                   help="Receive our own multicast output (IP_MULTICAST_LOOP)")
    p.add_argument("--dump-packets", action="store_true", default=None,
                   help="Hexdump every received datagram at DEBUG level")
    args = p.parse_args(argv)

    try:
        config = load_config(args.config).merged(
            log_level=args.log_level,
            multicast_loop=args.multicast_loop,
            dump_packets=args.dump_packets,
        )
    except (ConfigError, FileNotFoundError) as e:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        logger.error(str(e))
        return 2

    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    engine = ReflectorEngine(config, logger=logger)
    try:
        engine.open()
    except OSError as e:
        logger.error(f"Startup failed: {e}")
        return 1

    try:
        engine.run()
    except KeyboardInterrupt:
        logger.info("Stopping reflector")
    finally:
        engine.close()
        logger.info(engine.summary())
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
