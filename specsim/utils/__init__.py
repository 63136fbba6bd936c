# Utils Package
from .helpers import load_config, save_config, save_results, setup_logging, make_rng

__all__ = ['load_config', 'save_config', 'save_results', 'setup_logging', 'make_rng']
