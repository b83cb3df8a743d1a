"""Achievement and gamification engine for tipped-wage shift logs"""

__version__ = "0.1.0"
