import argparse
import os
import uvicorn
from emotutor.config import configure_logging, load_config

def main():
    ap = argparse.ArgumentParser(description="Serve the emotutor FastAPI app")
    ap.add_argument("--config", required=True, help="Path to YAML config")
    args = ap.parse_args()

    cfg = load_config(args.config)
    configure_logging(cfg.logging)
    # create_app() reads the config path from the environment
    os.environ["EMOTUTOR_CONFIG"] = args.config
    uvicorn.run("emotutor.server.app:create_app", factory=True,
                host=cfg.server.host, port=cfg.server.port, reload=False)

if __name__ == "__main__":
    main()
