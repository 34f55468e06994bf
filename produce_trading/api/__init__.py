from produce_trading import __version__

__all__ = ["__version__"]
