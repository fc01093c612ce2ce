import os
import sys
import hydra
import uvicorn
from omegaconf import DictConfig, OmegaConf

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from trafficlites.common.config import AppConfig, set_config
from trafficlites.common.database import configure_engine, init_db
from trafficlites.common.logging import setup_logger, set_level
from trafficlites.presentation.api import app

logger = setup_logger("trafficlites.server")

@hydra.main(version_base=None, config_path="../conf", config_name="config")
def main(cfg: DictConfig):
    # Validate the composed config against the structured schema
    cfg = OmegaConf.merge(OmegaConf.structured(AppConfig), cfg)
    set_config(cfg)

    configure_engine(cfg.database.url, echo=cfg.database.echo)
    init_db()
    set_level(cfg.server.log_level)

    logger.info(f"Starting server at http://{cfg.server.host}:{cfg.server.port}")
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port)

if __name__ == "__main__":
    main()
