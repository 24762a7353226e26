"""
Zi Wei Dou Shu natal chart engine.

Entry point for most callers is ziwei.chart.compute_chart().
"""

__version__ = "0.1.0"
