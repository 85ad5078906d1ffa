from mneme.consts import VERSION

__version__ = VERSION
