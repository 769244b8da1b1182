"""WebTwin AI - website health monitoring and page-flow analytics"""

__version__ = "0.3.0"
