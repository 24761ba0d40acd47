"""Meet 시그널링 릴레이 서버"""

__version__ = "0.1.0"
