"""Version information for mentor-session."""

__version__ = "0.3.0"
