"""NeuralNote: journaling service with reflections, habit detection and dashboards."""

__version__ = "1.0.0"
