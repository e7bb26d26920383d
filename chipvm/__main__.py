"""Command line entry point.

    python -m chipvm rom=games/pong.ch8
    python -m chipvm rom=games/pong.ch8 headless=true
    python -m chipvm rom=test.ch8 headless=true max_cycles=5000
"""

import hydra
from hydra.utils import to_absolute_path
from omegaconf import DictConfig

from chipvm.config import load_config
from chipvm.rendering import display_to_text
from chipvm.runner import create_interpreter
from chipvm.terminal import run_terminal


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> None:
    config = load_config(cfg)
    config.rom = to_absolute_path(config.rom)
    interpreter = create_interpreter(config)

    if not config.headless:
        from chipvm.frontend import run_window

        run_window(interpreter, scale=config.scale, color_scheme=config.color_scheme)
        return

    if config.max_cycles is None:
        try:
            run_terminal(interpreter)
        except KeyboardInterrupt:
            pass
        return

    interpreter.run_headless(config.max_cycles, progress=True)
    interpreter.display.present()
    print(display_to_text(interpreter.display.snapshot()))


if __name__ == "__main__":
    main()
