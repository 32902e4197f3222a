import argparse
import asyncio

from emotutor.config import configure_logging, load_config
from emotutor.factory import build_controller
from emotutor.loop.presenter import LogPresenter

async def run(cfg, subject: str, seconds: float) -> None:
    controller = build_controller(cfg, presenter=LogPresenter())
    controller.select_subject(subject)
    try:
        if not await controller.start():
            return
        await asyncio.sleep(seconds)
    finally:
        controller.stop()
        controller.narrator.engine.close()

def main():
    ap = argparse.ArgumentParser(description="Run a headless teaching session")
    ap.add_argument("--config", required=True, help="Path to YAML config")
    ap.add_argument("--subject", default="os", help="Subject id (os | adsa | java)")
    ap.add_argument("--seconds", type=float, default=30.0, help="How long to teach")
    ap.add_argument("--simulated", action="store_true", help="Use the simulated learner instead of the camera")
    ap.add_argument("--silent", action="store_true", help="Log narration instead of speaking")
    args = ap.parse_args()

    cfg = load_config(args.config)
    if args.simulated:
        cfg.affect.source = "simulated"
    if args.silent:
        cfg.voice.engine = "silent"
    configure_logging(cfg.logging)
    asyncio.run(run(cfg, args.subject, args.seconds))

if __name__ == "__main__":
    main()
