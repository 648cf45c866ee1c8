import argparse
import logging
import sys

from PyQt5.QtWidgets import QApplication

from chronostasis.core.config_loader import load_config
from chronostasis.ui.main_window import MainWindow


def _parse_level(name):
    return getattr(logging, str(name).upper(), logging.INFO)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Neon motion-trail skeleton from a live webcam")
    parser.add_argument("--config", default="config.json", help="Path to JSON config (default: config.json)")
    parser.add_argument("--camera", type=int, default=None, help="Camera index, overrides camera.index")
    parser.add_argument("--log-level", default=None, help="Logging level, overrides logging.level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=_parse_level(args.log_level or "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config)
    if args.log_level is None:
        logging.getLogger().setLevel(_parse_level(config.get("logging", {}).get("level", "INFO")))
    if args.camera is not None:
        config.setdefault("camera", {})["index"] = args.camera

    app = QApplication(sys.argv[:1])
    window = MainWindow(config)
    window.show()
    code = app.exec_()
    window.shutdown()
    return code


if __name__ == "__main__":
    sys.exit(main())
