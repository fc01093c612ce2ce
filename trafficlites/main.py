import argparse
import sys

def main(argv=None):
    """
    Command line entry point.
    """
    parser = argparse.ArgumentParser(description="Trafficlites - traffic signal timing service")
    parser.add_argument('command', choices=['serve', 'init-db'], help="Command to run")
    parser.add_argument('--config-dir', default="conf", help="Directory holding config.yaml")

    args, unknown = parser.parse_known_args(argv)

    from pathlib import Path
    from trafficlites.common.config import ConfigManager, set_config
    from trafficlites.common.database import configure_engine, init_db
    from trafficlites.common.logging import setup_logger, set_level

    logger = setup_logger("trafficlites")

    # Remaining arguments are OmegaConf dotlist overrides, e.g. server.port=8080
    cfg = ConfigManager(Path(args.config_dir)).load(overrides=unknown)
    set_config(cfg)
    configure_engine(cfg.database.url, echo=cfg.database.echo)

    if args.command == 'init-db':
        init_db()
        logger.info("Database tables ensured")
        return 0

    import uvicorn
    from trafficlites.presentation.api import app

    init_db()
    set_level(cfg.server.log_level)
    logger.info(f"Starting server at http://{cfg.server.host}:{cfg.server.port}")
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port)
    return 0

if __name__ == "__main__":
    sys.exit(main())
