from . import run

__all__ = ['run']
